import uuid
from datetime import datetime
from quranic_complex import db, bcrypt


def new_id():
    return str(uuid.uuid4())


def isoformat(value):
    return value.isoformat() if value else None


class TranslatableMixin:
    """Base rows that keep their display text in per-locale translation rows."""

    def translation_for(self, locale):
        for translation in self.translations:
            if translation.locale == locale:
                return translation
        return None


class User(db.Model):
    __tablename__ = 'users'

    ROLES = ('ADMIN', 'STUDENT', 'USER')
    STUDY_LEVELS = ('BEGINNER', 'INTERMEDIATE', 'ADVANCED')
    STATUSES = ('PENDING', 'APPROVED', 'REJECTED')

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(120))
    email = db.Column(db.String(255), unique=True, nullable=False)
    email_verified = db.Column(db.DateTime, nullable=True)
    image = db.Column(db.String(500))
    phone = db.Column(db.String(30))
    password = db.Column(db.String(255))
    role = db.Column(db.String(20), nullable=False, default='USER')
    national_code = db.Column(db.String(10), unique=True, nullable=True)
    date_of_birth = db.Column(db.Date, nullable=True)
    quranic_study_level = db.Column(db.String(20), nullable=True)
    national_card_picture = db.Column(db.String(500))
    status = db.Column(db.String(20), nullable=False, default='PENDING')
    login_code = db.Column(db.String(6), nullable=True)
    login_code_expires = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    chats = db.relationship('Chat', backref='user', lazy='dynamic', cascade='all, delete-orphan')
    payments = db.relationship('Payment', backref='user', lazy='dynamic', cascade='all, delete-orphan')

    def set_password(self, password):
        self.password = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        if not self.password:
            return False
        return bcrypt.check_password_hash(self.password, password)

    def is_admin(self):
        return self.role == 'ADMIN'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'emailVerified': isoformat(self.email_verified),
            'image': self.image,
            'phone': self.phone,
            'role': self.role,
            'nationalCode': self.national_code,
            'dateOfBirth': isoformat(self.date_of_birth),
            'quranicStudyLevel': self.quranic_study_level,
            'nationalCardPicture': self.national_card_picture,
            'status': self.status,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }


class VerificationToken(db.Model):
    __tablename__ = 'verification_tokens'

    id = db.Column(db.Integer, primary_key=True)
    identifier = db.Column(db.String(255), nullable=False)
    token = db.Column(db.String(128), unique=True, nullable=False)
    expires = db.Column(db.DateTime, nullable=False)

    __table_args__ = (db.UniqueConstraint('identifier', 'token', name='unique_verification_token'),)


class Program(TranslatableMixin, db.Model):
    __tablename__ = 'programs'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    slug = db.Column(db.String(200), unique=True, nullable=False)
    image = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    translations = db.relationship('ProgramTranslation', backref='program', cascade='all, delete-orphan')


class ProgramTranslation(db.Model):
    __tablename__ = 'program_translations'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    program_id = db.Column(db.String(36), db.ForeignKey('programs.id', ondelete='CASCADE'), nullable=False)
    locale = db.Column(db.String(5), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    age_group = db.Column(db.String(120), nullable=False)
    schedule = db.Column(db.String(255), nullable=False)
    meta_title = db.Column(db.String(255))
    meta_description = db.Column(db.Text)
    keywords = db.Column(db.String(500))

    __table_args__ = (db.UniqueConstraint('program_id', 'locale', name='unique_program_locale'),)


class News(TranslatableMixin, db.Model):
    __tablename__ = 'news'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    slug = db.Column(db.String(200), unique=True, nullable=False)
    image = db.Column(db.String(500))
    date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    translations = db.relationship('NewsTranslation', backref='news', cascade='all, delete-orphan')


class NewsTranslation(db.Model):
    __tablename__ = 'news_translations'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    news_id = db.Column(db.String(36), db.ForeignKey('news.id', ondelete='CASCADE'), nullable=False)
    locale = db.Column(db.String(5), nullable=False)
    title = db.Column(db.String(255), nullable=False, default='')
    content = db.Column(db.Text, nullable=False, default='')
    excerpt = db.Column(db.Text, nullable=False, default='')
    meta_title = db.Column(db.String(255))
    meta_description = db.Column(db.Text)
    keywords = db.Column(db.String(500))

    __table_args__ = (db.UniqueConstraint('news_id', 'locale', name='unique_news_locale'),)


class Gallery(TranslatableMixin, db.Model):
    __tablename__ = 'gallery'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    image = db.Column(db.String(500))
    category = db.Column(db.String(120), nullable=False, default='')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    translations = db.relationship('GalleryTranslation', backref='gallery', cascade='all, delete-orphan')


class GalleryTranslation(db.Model):
    __tablename__ = 'gallery_translations'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    gallery_id = db.Column(db.String(36), db.ForeignKey('gallery.id', ondelete='CASCADE'), nullable=False)
    locale = db.Column(db.String(5), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)

    __table_args__ = (db.UniqueConstraint('gallery_id', 'locale', name='unique_gallery_locale'),)


class Event(TranslatableMixin, db.Model):
    __tablename__ = 'events'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    slug = db.Column(db.String(200), unique=True, nullable=False)
    date = db.Column(db.DateTime, nullable=False)
    time = db.Column(db.String(50), nullable=False)
    location = db.Column(db.String(255), nullable=False)
    image = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    translations = db.relationship('EventTranslation', backref='event', cascade='all, delete-orphan')


class EventTranslation(db.Model):
    __tablename__ = 'event_translations'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    event_id = db.Column(db.String(36), db.ForeignKey('events.id', ondelete='CASCADE'), nullable=False)
    locale = db.Column(db.String(5), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)

    __table_args__ = (db.UniqueConstraint('event_id', 'locale', name='unique_event_locale'),)


class Contact(db.Model):
    __tablename__ = 'contacts'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(30))
    subject = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'subject': self.subject,
            'message': self.message,
            'createdAt': isoformat(self.created_at),
        }


class Donation(db.Model):
    __tablename__ = 'donations'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(30))
    amount = db.Column(db.Integer, nullable=False)
    receipt = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'amount': self.amount,
            'receipt': self.receipt,
            'createdAt': isoformat(self.created_at),
        }


class Payment(db.Model):
    """Proof of a bank transfer uploaded by a signed in user, reviewed by admins."""
    __tablename__ = 'payments'

    STATUSES = User.STATUSES

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    image = db.Column(db.String(500), nullable=False)
    description = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default='PENDING')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'user': {'id': self.user.id, 'name': self.user.name, 'email': self.user.email},
            'image': self.image,
            'description': self.description,
            'status': self.status,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }


class Chat(db.Model):
    __tablename__ = 'chats'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    title = db.Column(db.String(255), nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    visibility = db.Column(db.String(10), nullable=False, default='private')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    messages = db.relationship('Message', backref='chat', lazy='dynamic',
                               cascade='all, delete-orphan', order_by='Message.created_at')
    votes = db.relationship('Vote', backref='chat', lazy='dynamic', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'userId': self.user_id,
            'visibility': self.visibility,
            'createdAt': isoformat(self.created_at),
        }


class Message(db.Model):
    __tablename__ = 'messages'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    chat_id = db.Column(db.String(36), db.ForeignKey('chats.id', ondelete='CASCADE'), nullable=False)
    role = db.Column(db.String(20), nullable=False)
    parts = db.Column(db.JSON, nullable=False, default=list)
    attachments = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def text(self):
        return ''.join(p.get('text', '') for p in self.parts or [] if p.get('type') == 'text')

    def to_dict(self):
        return {
            'id': self.id,
            'chatId': self.chat_id,
            'role': self.role,
            'parts': self.parts,
            'attachments': self.attachments,
            'createdAt': isoformat(self.created_at),
        }


class Vote(db.Model):
    __tablename__ = 'votes'

    chat_id = db.Column(db.String(36), db.ForeignKey('chats.id', ondelete='CASCADE'), primary_key=True)
    message_id = db.Column(db.String(36), db.ForeignKey('messages.id', ondelete='CASCADE'), primary_key=True)
    is_upvoted = db.Column(db.Boolean, nullable=False)

    def to_dict(self):
        return {'chatId': self.chat_id, 'messageId': self.message_id, 'isUpvoted': self.is_upvoted}


class Document(db.Model):
    __tablename__ = 'documents'

    KINDS = ('text', 'code', 'sheet')

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    created_at = db.Column(db.DateTime, primary_key=True, default=datetime.utcnow)
    title = db.Column(db.String(255), nullable=False)
    content = db.Column(db.Text)
    kind = db.Column(db.String(10), nullable=False, default='text')
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'createdAt': isoformat(self.created_at),
            'title': self.title,
            'content': self.content,
            'kind': self.kind,
            'userId': self.user_id,
        }


class Suggestion(db.Model):
    __tablename__ = 'suggestions'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    document_id = db.Column(db.String(36), nullable=False)
    document_created_at = db.Column(db.DateTime, nullable=False)
    original_text = db.Column(db.Text, nullable=False)
    suggested_text = db.Column(db.Text, nullable=False)
    description = db.Column(db.Text)
    is_resolved = db.Column(db.Boolean, nullable=False, default=False)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.ForeignKeyConstraint(['document_id', 'document_created_at'],
                                ['documents.id', 'documents.created_at'], ondelete='CASCADE'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'documentId': self.document_id,
            'documentCreatedAt': isoformat(self.document_created_at),
            'originalText': self.original_text,
            'suggestedText': self.suggested_text,
            'description': self.description,
            'isResolved': self.is_resolved,
            'userId': self.user_id,
            'createdAt': isoformat(self.created_at),
        }
