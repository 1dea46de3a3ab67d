import os
from quranic_complex.models import Program, ProgramTranslation

from conftest import png_file

PROGRAM = {
    'slug': 'hifz',
    'title': 'Memorization',
    'description': 'Daily memorization circle',
    'ageGroup': '7-12',
    'schedule': 'Sat 10:00',
}


def create_program(client, locale='en', **overrides):
    data = dict(PROGRAM, **overrides)
    return client.post(f'/api/programs?locale={locale}', data=data, content_type='multipart/form-data')


def test_public_listing_uses_default_locale(admin_client, client):
    create_program(admin_client)
    create_program(admin_client, slug='tajweed', locale='fa', title='تجوید')

    items = client.get('/api/programs').get_json()
    assert [p['slug'] for p in items] == ['hifz']
    assert items[0]['ageGroup'] == '7-12'

    items = client.get('/api/programs?locale=fa').get_json()
    assert [p['title'] for p in items] == ['تجوید']


def test_unsupported_locale_is_rejected(client):
    response = client.get('/api/programs?locale=de')
    assert response.status_code == 400


def test_create_requires_fields(admin_client):
    response = create_program(admin_client, schedule='')
    assert response.status_code == 400
    assert 'schedule' in response.get_json()['errors']


def test_duplicate_slug(admin_client):
    create_program(admin_client)
    response = create_program(admin_client)
    assert response.status_code == 409
    assert response.get_json()['message'] == 'A program with slug "hifz" already exists.'


def test_get_by_slug(admin_client, client):
    create_program(admin_client, metaDescription='Learn by heart')
    body = client.get('/api/programs/hifz').get_json()
    assert body['metaDescription'] == 'Learn by heart'
    assert client.get('/api/programs/unknown').status_code == 404


def test_partial_update_touches_only_sent_fields(admin_client):
    program_id = create_program(admin_client).get_json()['id']

    response = admin_client.patch(f'/api/programs/{program_id}?locale=en', data={'schedule': 'Sun 09:00'})
    body = response.get_json()
    assert body['schedule'] == 'Sun 09:00'
    assert body['title'] == 'Memorization'
    assert body['ageGroup'] == '7-12'


def test_update_adds_translation_for_new_locale(admin_client):
    program_id = create_program(admin_client).get_json()['id']

    body = admin_client.patch(f'/api/programs/{program_id}?locale=ar', data={'title': 'التحفيظ'}).get_json()
    assert body['locale'] == 'ar'
    assert body['title'] == 'التحفيظ'
    assert ProgramTranslation.query.filter_by(program_id=program_id).count() == 2
    assert Program.query.count() == 1


def test_remove_image(admin_client, upload_dir):
    created = create_program(admin_client, image=png_file()).get_json()
    path = os.path.join(upload_dir, created['image'][len('/uploads/'):])

    body = admin_client.patch(f'/api/programs/{created["id"]}', data={'remove_image': 'true'}).get_json()
    assert body['image'] is None
    assert not os.path.exists(path)


def test_delete_cascades(admin_client):
    program_id = create_program(admin_client).get_json()['id']
    admin_client.patch(f'/api/programs/{program_id}?locale=fa', data={'title': 'حفظ'})

    response = admin_client.delete(f'/api/programs/{program_id}')
    assert response.get_json()['message'] == 'Program deleted successfully'
    assert ProgramTranslation.query.count() == 0
    assert admin_client.delete(f'/api/programs/{program_id}').status_code == 404
