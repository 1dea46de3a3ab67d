import io
from datetime import datetime, timedelta
import pytest
from werkzeug.datastructures import FileStorage

from quranic_complex import db
from quranic_complex.models import Contact, News, Event, User
from quranic_complex.services import news as news_service, programs as program_service
from quranic_complex.services import events as event_service

from conftest import PNG_BYTES, make_user, png_file


@pytest.fixture
def content(app):
    program_service.create_program({
        'slug': 'hifz', 'title': 'Memorization', 'description': 'Daily circle',
        'age_group': '7-12', 'schedule': 'Sat 10:00',
    }, 'en')
    program_service.create_program_translation('hifz', 'fa', {
        'title': 'حفظ قرآن', 'description': 'حلقه روزانه', 'age_group': '۷ تا ۱۲', 'schedule': 'شنبه',
    })
    news_service.create_news({
        'slug': 'open-day', 'title': 'Open Day', 'content': 'Come and visit.', 'excerpt': 'Visit us',
    }, 'en')
    event_service.create_event({
        'date': datetime.utcnow() + timedelta(days=5), 'time': '19:00', 'location': 'Main hall',
    }, [{'locale': 'en', 'name': 'Quran Night', 'description': 'Recitation evening'}],
        FileStorage(io.BytesIO(PNG_BYTES), 'night.png', content_type='image/png'))


# Public site

def test_root_redirects_to_default_locale(client):
    response = client.get('/')
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/en/')


def test_home_lists_content(client, content):
    html = client.get('/en/').get_data(as_text=True)
    assert 'dir="ltr"' in html
    assert 'Open Day' in html
    assert 'Quran Night' in html
    assert 'Memorization' in html


@pytest.mark.parametrize('locale', ['fa', 'ar'])
def test_rtl_locales(client, locale):
    html = client.get(f'/{locale}/').get_data(as_text=True)
    assert f'lang="{locale}"' in html
    assert 'dir="rtl"' in html


def test_unknown_locale_is_404(client):
    assert client.get('/de/').status_code == 404
    assert client.get('/de/news').status_code == 404


def test_locale_is_remembered(client):
    client.get('/fa/about')
    assert client.get('/').headers['Location'].endswith('/fa/')


@pytest.mark.parametrize('path', ['programs', 'news', 'gallery', 'events', 'about', 'contact', 'donation'])
def test_section_pages_render(client, content, path):
    assert client.get(f'/en/{path}').status_code == 200


def test_program_detail_uses_locale(client, content):
    assert 'حفظ قرآن' in client.get('/fa/programs/hifz').get_data(as_text=True)
    assert client.get('/ar/programs/hifz').status_code == 404
    assert client.get('/en/programs/missing').status_code == 404


def test_news_detail(client, content):
    assert 'Come and visit.' in client.get('/en/news/open-day').get_data(as_text=True)
    assert client.get('/fa/news/open-day').status_code == 404


def test_contact_form(client):
    response = client.post('/en/contact', data={
        'name': 'Sara', 'email': 'sara@example.com', 'subject': 'Hello', 'message': 'Question',
    }, follow_redirects=True)
    assert response.status_code == 200
    assert 'Message sent successfully' in response.get_data(as_text=True)
    assert Contact.query.one().subject == 'Hello'


def test_contact_form_errors(client):
    response = client.post('/en/contact', data={'name': 'Sara', 'email': 'bad'})
    assert response.status_code == 200
    assert Contact.query.count() == 0


def test_contact_prefills_signed_in_user(student_client):
    assert 'student@example.com' in student_client.get('/en/contact').get_data(as_text=True)


# Dashboard

def test_dashboard_requires_login(client):
    response = client.get('/dashboard/')
    assert response.status_code == 302
    assert '/auth/login' in response.headers['Location']


def test_dashboard_shows_profile(student_client):
    assert 'student@example.com' in student_client.get('/dashboard/').get_data(as_text=True)


def test_profile_update(student_client, student, upload_dir):
    response = student_client.post('/dashboard/profile', data={
        'name': 'Updated', 'phone': '0912', 'image': png_file(),
    }, content_type='multipart/form-data')
    assert response.status_code == 302
    user = db.session.get(User, student.id)
    assert user.name == 'Updated'
    assert user.image.startswith('/uploads/avatars/')


# Admin

def test_admin_requires_admin_role(client, student_client):
    assert '/auth/login' in client.get('/admin/').headers['Location']
    assert student_client.get('/admin/').headers['Location'].endswith('/dashboard/')


@pytest.mark.parametrize('path', ['', 'news', 'programs', 'gallery', 'events', 'users', 'contacts',
                                  'ai-agent', 'news/new', 'events/new', 'donations', 'payments'])
def test_admin_pages_render(admin_client, content, path):
    assert admin_client.get(f'/admin/{path}').status_code == 200


def test_admin_creates_and_edits_news(admin_client):
    response = admin_client.post('/admin/news/new', data={
        'slug': 'eid', 'title': 'Eid', 'content': 'Eid celebration', 'excerpt': 'Eid', 'locale': 'en',
    })
    assert response.status_code == 302
    news = News.query.one()

    response = admin_client.post(f'/admin/news/{news.id}/edit', data={
        'slug': 'eid', 'title': 'عید', 'content': 'جشن عید', 'excerpt': 'عید', 'locale': 'fa',
    })
    assert response.status_code == 302
    assert news_service.get_news('eid', 'fa')['title'] == 'عید'
    assert news_service.get_news('eid', 'en')['title'] == 'Eid'

    admin_client.post(f'/admin/news/{news.id}/delete')
    assert News.query.count() == 0


def test_admin_news_form_shows_errors(admin_client):
    response = admin_client.post('/admin/news/new', data={'slug': 'x', 'locale': 'en'})
    assert response.status_code == 200
    assert 'Title is required' in response.get_data(as_text=True)


def test_admin_event_edit_keeps_other_translations(admin_client, content):
    event = Event.query.one()
    response = admin_client.post(f'/admin/events/{event.id}/edit?locale=fa', data={
        'name': 'شب قرآن', 'description': 'شب تلاوت', 'date': '2030-01-02T18:00:00',
        'time': '18:00', 'location': 'Main hall', 'locale': 'fa',
    })
    assert response.status_code == 302
    locales = sorted(t['locale'] for t in event_service.get_event(event.id)['translations'])
    assert locales == ['en', 'fa']


def test_admin_verifies_user(admin_client):
    user = make_user('pending@example.com', verified=False)
    admin_client.post(f'/admin/users/{user.id}/verify')
    assert db.session.get(User, user.id).email_verified is not None
