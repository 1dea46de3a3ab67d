import io
import json
import os
from datetime import datetime, timedelta

from quranic_complex.models import Gallery, GalleryTranslation, Event

from conftest import png_file


def create_item(client, category='Classes', translations=None, image=True):
    translations = translations or [{'locale': 'en', 'title': 'Morning circle', 'description': 'Hifz'}]
    data = {'category': category, 'translations': json.dumps(translations)}
    if image:
        data['image'] = png_file()
    return client.post('/api/gallery', data=data, content_type='multipart/form-data')


# Gallery

def test_gallery_create_requires_image(admin_client):
    response = create_item(admin_client, image=False)
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Image file is required'


def test_gallery_rejects_duplicate_locales(admin_client):
    response = create_item(admin_client, translations=[
        {'locale': 'en', 'title': 'A'}, {'locale': 'en', 'title': 'B'},
    ])
    assert response.status_code == 400
    assert Gallery.query.count() == 0


def test_gallery_list_by_locale(admin_client, client):
    create_item(admin_client, translations=[
        {'locale': 'en', 'title': 'Morning circle'}, {'locale': 'fa', 'title': 'حلقه صبح'},
    ])
    items = client.get('/api/gallery?locale=fa').get_json()
    assert len(items) == 1
    assert items[0]['title'] == 'حلقه صبح'
    assert items[0]['category'] == 'Classes'


def test_gallery_put_replaces_translation_set(admin_client):
    item = create_item(admin_client, translations=[
        {'locale': 'en', 'title': 'Morning circle'}, {'locale': 'ar', 'title': 'حلقة الصباح'},
    ]).get_json()

    response = admin_client.put(f'/api/gallery/{item["id"]}', data={
        'translations': json.dumps([{'locale': 'en', 'title': 'Evening circle'}]),
    }, content_type='multipart/form-data')
    body = response.get_json()
    assert response.status_code == 200
    assert body['category'] == 'Classes'
    assert body['translations'] == [{'locale': 'en', 'title': 'Evening circle', 'description': None}]
    assert GalleryTranslation.query.count() == 1


def test_gallery_put_with_empty_file_clears_image(admin_client, upload_dir):
    item = create_item(admin_client).get_json()
    path = os.path.join(upload_dir, item['image'][len('/uploads/'):])

    response = admin_client.put(f'/api/gallery/{item["id"]}', data={
        'image': (io.BytesIO(b''), '', 'application/octet-stream'),
    }, content_type='multipart/form-data')
    assert response.get_json()['image'] is None
    assert not os.path.exists(path)


def test_gallery_categories(admin_client, client):
    create_item(admin_client, category='Classes')
    create_item(admin_client, category='Ceremonies')
    assert client.get('/api/gallery/categories').get_json() == ['Ceremonies', 'Classes']

    assert admin_client.post('/api/gallery/categories', json={'name': ' '}).status_code == 400
    assert admin_client.post('/api/gallery/categories', json={'name': 'Trips'}).get_json() == {'name': 'Trips'}

    response = admin_client.delete('/api/gallery/categories/Classes', json={'replacementCategory': 'Ceremonies'})
    assert response.get_json()['updated'] == 1
    assert client.get('/api/gallery/categories').get_json() == ['Ceremonies']


def test_gallery_delete(admin_client, upload_dir):
    item = create_item(admin_client).get_json()
    path = os.path.join(upload_dir, item['image'][len('/uploads/'):])
    admin_client.delete(f'/api/gallery/{item["id"]}')
    assert Gallery.query.count() == 0
    assert not os.path.exists(path)
    assert admin_client.get(f'/api/gallery/{item["id"]}').status_code == 404


# Events

def create_event(client, name='Quran Night', when=None, translations=None, image=True):
    when = when or datetime.utcnow() + timedelta(days=3)
    translations = translations or [{'locale': 'en', 'name': name, 'description': 'Recitation evening'}]
    data = {
        'date': when.isoformat(),
        'time': '19:00',
        'location': 'Main hall',
        'translations': json.dumps(translations),
    }
    if image:
        data['image'] = png_file()
    return client.post('/api/events', data=data, content_type='multipart/form-data')


def test_event_slug_from_first_name(admin_client):
    response = create_event(admin_client, name='Quran  Night Special')
    assert response.status_code == 201
    assert response.get_json()['slug'] == 'quran-night-special'

    duplicate = create_event(admin_client, name='quran night special')
    assert duplicate.status_code == 409


def test_event_requires_translation_description(admin_client):
    response = create_event(admin_client, translations=[{'locale': 'en', 'name': 'X'}])
    assert response.status_code == 400
    assert Event.query.count() == 0


def test_event_list_only_upcoming(admin_client, client):
    create_event(admin_client, name='Past', when=datetime.utcnow() - timedelta(days=1))
    create_event(admin_client, name='Later', when=datetime.utcnow() + timedelta(days=10))
    create_event(admin_client, name='Soon', when=datetime.utcnow() + timedelta(days=2))

    assert client.get('/api/events').status_code == 400
    names = [e['name'] for e in client.get('/api/events?locale=en').get_json()]
    assert names == ['Soon', 'Later']


def test_event_update_and_delete(admin_client):
    event = create_event(admin_client).get_json()
    when = datetime(2030, 1, 2, 18, 0)

    response = admin_client.put(f'/api/events/{event["id"]}', data={
        'date': when.isoformat(),
        'time': '18:00',
        'location': 'Garden',
        'translations': json.dumps([
            {'locale': 'en', 'name': 'Quran Night', 'description': 'Moved outside'},
            {'locale': 'fa', 'name': 'شب قرآن', 'description': 'در حیاط'},
        ]),
    }, content_type='multipart/form-data')
    body = response.get_json()
    assert body['location'] == 'Garden'
    assert body['date'].startswith('2030-01-02T18:00')
    assert [t['locale'] for t in body['translations']] == ['en', 'fa']

    admin_client.delete(f'/api/events/{event["id"]}')
    assert admin_client.get(f'/api/events/{event["id"]}').status_code == 404
