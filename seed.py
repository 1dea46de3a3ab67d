from datetime import datetime, timedelta, date
from quranic_complex import create_app, db
from quranic_complex.models import (User, Program, ProgramTranslation, News, NewsTranslation,
                                    Gallery, GalleryTranslation, Event, EventTranslation, Donation, Payment)


def seed_database():
    app = create_app()
    with app.app_context():
        password = 'password123'

        print("Creating users...")

        def create_user(email, name, role, extra=None):
            user = User.query.filter_by(email=email).first()
            if user is None:
                user = User(email=email, name=name, role=role, status='APPROVED',
                            email_verified=datetime.utcnow())
                user.set_password(password)
                db.session.add(user)
            for key, value in (extra or {}).items():
                setattr(user, key, value)
            return user

        create_user('admin@example.com', 'Site Admin', 'ADMIN')
        student = create_user('student@example.com', 'Sample Student', 'STUDENT', {
            'national_code': '0012345678',
            'date_of_birth': date(2005, 3, 21),
            'quranic_study_level': 'BEGINNER',
        })
        db.session.commit()

        print("Creating programs...")
        if not Program.query.filter_by(slug='quran-memorization').first():
            program = Program(slug='quran-memorization')
            program.translations = [
                ProgramTranslation(locale='en', title='Quran Memorization',
                                   description='A structured path to memorize the Quran with daily review.',
                                   age_group='7-15', schedule='Saturday to Wednesday, 16:00-18:00'),
                ProgramTranslation(locale='fa', title='حفظ قرآن کریم',
                                   description='مسیری منظم برای حفظ قرآن همراه با مرور روزانه.',
                                   age_group='۷ تا ۱۵ سال', schedule='شنبه تا چهارشنبه، ۱۶ تا ۱۸'),
                ProgramTranslation(locale='ar', title='حفظ القرآن الكريم',
                                   description='مسار منظم لحفظ القرآن مع مراجعة يومية.',
                                   age_group='٧-١٥', schedule='من السبت إلى الأربعاء، ١٦:٠٠-١٨:٠٠'),
            ]
            db.session.add(program)

        if not Program.query.filter_by(slug='tajweed-basics').first():
            program = Program(slug='tajweed-basics')
            program.translations = [
                ProgramTranslation(locale='en', title='Tajweed Basics',
                                   description='Learn the rules of correct Quran recitation.',
                                   age_group='Adults', schedule='Thursday, 10:00-12:00'),
            ]
            db.session.add(program)

        print("Creating news...")
        if not News.query.filter_by(slug='new-term-registration').first():
            news = News(slug='new-term-registration', date=datetime.utcnow() - timedelta(days=2))
            news.translations = [
                NewsTranslation(locale='en', title='Registration for the new term is open',
                                excerpt='Sign up for memorization and tajweed classes.',
                                content='Registration for all programs of the new term is now open.'),
                NewsTranslation(locale='fa', title='ثبت نام ترم جدید آغاز شد',
                                excerpt='برای کلاس‌های حفظ و تجوید ثبت نام کنید.',
                                content='ثبت نام همه برنامه‌های ترم جدید آغاز شده است.'),
            ]
            db.session.add(news)

        print("Creating gallery...")
        if not Gallery.query.first():
            item = Gallery(category='Ceremonies', image='/static/img/placeholder.svg')
            item.translations = [
                GalleryTranslation(locale='en', title='Graduation ceremony',
                                   description='Students who completed the memorization program.'),
                GalleryTranslation(locale='ar', title='حفل التخرج'),
            ]
            db.session.add(item)

        print("Creating events...")
        if not Event.query.filter_by(slug='quran-recitation-competition').first():
            event = Event(slug='quran-recitation-competition',
                          date=datetime.utcnow() + timedelta(days=14),
                          time='17:00', location='Main hall')
            event.translations = [
                EventTranslation(locale='en', name='Quran Recitation Competition',
                                 description='Annual recitation competition for all age groups.'),
                EventTranslation(locale='fa', name='مسابقه قرائت قرآن',
                                 description='مسابقه سالانه قرائت برای همه گروه‌های سنی.'),
            ]
            db.session.add(event)

        print("Creating donations and payments...")
        if not Donation.query.first():
            db.session.add(Donation(name='Sample Donor', email='donor@example.com', amount=500000))
        if not student.payments.first():
            db.session.add(Payment(user_id=student.id, image='/static/img/placeholder.svg',
                                   description='Monthly donation', status='APPROVED'))

        db.session.commit()

        print("\n" + "=" * 60)
        print("    Test accounts")
        print("=" * 60)
        print("\n[Admin] - content management and AI assistant")
        print("  Email: admin@example.com")
        print("  Password: password123")
        print("\n[Student] - dashboard")
        print("  Email: student@example.com")
        print("  Password: password123")
        print("\n" + "=" * 60)
        print("Database seeded!")


if __name__ == '__main__':
    seed_database()
