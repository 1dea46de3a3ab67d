import os
from unittest.mock import patch
from sqlalchemy.exc import SQLAlchemyError
from quranic_complex import db
from quranic_complex.models import News, NewsTranslation

from conftest import png_file


def create_news(client, slug='open-day', locale='en', **fields):
    data = {'slug': slug, 'title': 'Open day', 'content': 'Doors open at nine.', 'excerpt': 'Visit us'}
    data.update(fields)
    return client.post(f'/api/news?locale={locale}', data=data, content_type='multipart/form-data')


def test_list_requires_locale(client):
    response = client.get('/api/news')
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Locale parameter is required'


def test_create_requires_admin(client, student_client):
    assert create_news(client).status_code == 401
    assert create_news(student_client).status_code == 403


def test_create_and_fetch_by_slug(admin_client):
    response = create_news(admin_client, metaTitle='Open day 2025')
    assert response.status_code == 201
    body = response.get_json()
    assert body['slug'] == 'open-day'
    assert body['locale'] == 'en'
    assert body['metaTitle'] == 'Open day 2025'
    assert body['keywords'] is None

    fetched = admin_client.get('/api/news/open-day?locale=en').get_json()
    assert fetched['title'] == 'Open day'
    assert fetched['content'] == 'Doors open at nine.'


def test_create_rejects_missing_fields(admin_client):
    response = admin_client.post('/api/news?locale=en', data={'slug': 'x'})
    assert response.status_code == 400
    errors = response.get_json()['errors']
    assert 'title' in errors and 'content' in errors and 'excerpt' in errors


def test_duplicate_slug_conflicts(admin_client):
    create_news(admin_client)
    response = create_news(admin_client)
    assert response.status_code == 409
    assert response.get_json()['message'] == 'Slug "open-day" already exists.'


def test_missing_translation_is_not_found(admin_client):
    create_news(admin_client)
    response = admin_client.get('/api/news/open-day?locale=fa')
    assert response.status_code == 404


def test_list_is_newest_first_and_locale_filtered(admin_client):
    create_news(admin_client, slug='older', date='2024-01-01T00:00:00Z')
    create_news(admin_client, slug='newer', date='2024-06-01')
    create_news(admin_client, slug='persian', locale='fa', date='2024-07-01')

    items = admin_client.get('/api/news?locale=en').get_json()
    assert [item['slug'] for item in items] == ['newer', 'older']
    assert 'content' not in items[0]


def test_patch_without_changes_keeps_record(admin_client):
    news_id = create_news(admin_client).get_json()['id']
    before = db.session.get(News, news_id).updated_at

    response = admin_client.patch(f'/api/news/{news_id}?locale=en', data={'title': 'Open day'})
    assert response.status_code == 200
    assert db.session.get(News, news_id).updated_at == before


def test_patch_creates_missing_translation(admin_client):
    news_id = create_news(admin_client).get_json()['id']

    response = admin_client.patch(f'/api/news/{news_id}?locale=ar', data={'title': 'يوم مفتوح'})
    assert response.status_code == 200
    body = response.get_json()
    assert body['locale'] == 'ar'
    assert body['title'] == 'يوم مفتوح'
    assert body['content'] == ''
    assert NewsTranslation.query.filter_by(news_id=news_id).count() == 2


def test_patch_slug_conflict(admin_client):
    create_news(admin_client, slug='first')
    second_id = create_news(admin_client, slug='second').get_json()['id']
    response = admin_client.patch(f'/api/news/{second_id}', data={'slug': 'first'})
    assert response.status_code == 409


def test_patch_unknown_id(admin_client):
    response = admin_client.patch('/api/news/missing', data={'title': 'x'})
    assert response.status_code == 404
    assert response.get_json()['message'] == 'News item not found'


def test_image_replace_removes_old_file(admin_client, upload_dir):
    created = create_news(admin_client, image=png_file()).get_json()
    old_path = os.path.join(upload_dir, created['image'][len('/uploads/'):])
    assert os.path.exists(old_path)

    response = admin_client.patch(f'/api/news/{created["id"]}', data={'image': png_file('new.png')},
                                  content_type='multipart/form-data')
    updated = response.get_json()
    assert updated['image'] != created['image']
    assert not os.path.exists(old_path)
    assert os.path.exists(os.path.join(upload_dir, updated['image'][len('/uploads/'):]))


def test_failed_commit_discards_new_upload(admin_client, upload_dir):
    created = create_news(admin_client).get_json()

    with patch.object(db.session, 'commit', side_effect=SQLAlchemyError('disk full')):
        response = admin_client.patch(f'/api/news/{created["id"]}', data={'image': png_file()},
                                      content_type='multipart/form-data')
    assert response.status_code == 500
    news_dir = os.path.join(upload_dir, 'news')
    assert not os.path.isdir(news_dir) or os.listdir(news_dir) == []


def test_invalid_image_type_is_rejected(admin_client):
    response = create_news(admin_client, image=(png_file()[0], 'doc.pdf', 'application/pdf'))
    assert response.status_code == 400
    assert response.get_json()['message'].startswith('Invalid image file type')
    assert News.query.count() == 0


def test_delete_removes_translations_and_image(admin_client, upload_dir):
    created = create_news(admin_client, image=png_file()).get_json()
    path = os.path.join(upload_dir, created['image'][len('/uploads/'):])

    response = admin_client.delete(f'/api/news/{created["id"]}')
    assert response.get_json()['message'] == 'News item deleted successfully'
    assert News.query.count() == 0
    assert NewsTranslation.query.count() == 0
    assert not os.path.exists(path)
