import io
import os
from unittest.mock import patch

from quranic_complex import db
from quranic_complex.models import Donation, Payment
from quranic_complex.services.errors import ServiceError

from conftest import png_file, make_user, sign_in

DONOR = {'name': 'Sample Donor', 'email': 'donor@example.com', 'phone': '0912', 'amount': 500000}


def donate(client, **overrides):
    return client.post('/api/donation', json=dict(DONOR, **overrides))


def pdf_file(name='receipt.pdf'):
    return (io.BytesIO(b'%PDF-1.4 receipt'), name, 'application/pdf')


def upload_receipt(client, donation_id, file=None):
    data = {'donationId': donation_id}
    if file is not None:
        data['file'] = file
    return client.post('/api/donation/upload-receipt', data=data, content_type='multipart/form-data')


# Donations

def test_create_donation_is_public(client):
    response = donate(client)
    assert response.status_code == 201
    body = response.get_json()
    assert body['amount'] == 500000
    assert body['receipt'] is None
    assert Donation.query.count() == 1


def test_create_donation_validation(client):
    response = donate(client, amount=0)
    assert response.status_code == 400
    assert 'amount' in response.get_json()['errors']

    response = donate(client, email='not-an-email')
    assert response.status_code == 400
    assert 'email' in response.get_json()['errors']
    assert Donation.query.count() == 0


def test_list_donations_is_admin_only(client, student_client, admin_client):
    donate(client)
    assert client.get('/api/donation').status_code == 401
    assert student_client.get('/api/donation').status_code == 403

    donations = admin_client.get('/api/donation').get_json()
    assert [d['email'] for d in donations] == ['donor@example.com']


def test_upload_receipt_stores_file_and_thanks_donor(client, upload_dir):
    donation_id = donate(client).get_json()['id']

    with patch('quranic_complex.services.donations.email_service.send_thanks_email') as thanks:
        response = upload_receipt(client, donation_id, pdf_file())

    assert response.status_code == 200
    receipt = response.get_json()['donation']['receipt']
    assert receipt.startswith('/uploads/receipts/') and receipt.endswith('.pdf')
    assert os.path.exists(os.path.join(upload_dir, receipt[len('/uploads/'):]))
    thanks.assert_called_once_with('donor@example.com', 'Sample Donor')


def test_upload_receipt_keeps_receipt_when_email_fails(client):
    donation_id = donate(client).get_json()['id']

    with patch('quranic_complex.services.donations.email_service.send_thanks_email',
               side_effect=ServiceError('Email delivery failed')):
        response = upload_receipt(client, donation_id, png_file('receipt.png'))

    assert response.status_code == 200
    assert db.session.get(Donation, donation_id).receipt.startswith('/uploads/receipts/')


def test_upload_receipt_errors(client):
    donation_id = donate(client).get_json()['id']

    response = upload_receipt(client, donation_id)
    assert response.status_code == 400
    assert response.get_json()['message'] == 'No file provided'

    response = upload_receipt(client, 'missing', png_file())
    assert response.status_code == 404
    assert response.get_json()['message'] == 'Donation not found'

    response = upload_receipt(client, donation_id, (io.BytesIO(b'text'), 'notes.txt', 'text/plain'))
    assert response.status_code == 400
    assert db.session.get(Donation, donation_id).receipt is None


def test_update_donation_receipt(client, admin_client):
    donation_id = donate(client).get_json()['id']

    response = admin_client.put(f'/api/donation/{donation_id}', json={'receipt': 'https://example.com/r.pdf'})
    assert response.status_code == 200
    assert response.get_json()['receipt'] == 'https://example.com/r.pdf'

    response = admin_client.put(f'/api/donation/{donation_id}', json={})
    assert response.status_code == 400
    assert client.put(f'/api/donation/{donation_id}', json={'receipt': 'x'}).status_code == 401


# Payments

def submit_payment(client, description='Monthly charity', image=True):
    data = {'description': description}
    if image:
        data['image'] = png_file()
    return client.post('/api/payments', data=data, content_type='multipart/form-data')


def test_payments_require_login(client):
    assert submit_payment(client).status_code == 401
    assert client.get('/api/payments').status_code == 401


def test_create_payment(student_client, student, upload_dir):
    response = submit_payment(student_client)
    assert response.status_code == 201
    body = response.get_json()
    assert body['status'] == 'PENDING'
    assert body['userId'] == student.id
    assert body['image'].startswith('/uploads/payments/')
    assert os.path.exists(os.path.join(upload_dir, body['image'][len('/uploads/'):]))


def test_create_payment_requires_image(student_client):
    response = submit_payment(student_client, image=False)
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Image is required'
    assert Payment.query.count() == 0


def test_users_only_see_their_own_payments(app, student_client, admin_client):
    other = sign_in(app.test_client(), make_user('other@example.com'))
    submit_payment(student_client, 'Mine')
    submit_payment(other, 'Theirs')

    assert [p['description'] for p in student_client.get('/api/payments').get_json()] == ['Mine']
    assert len(admin_client.get('/api/payments').get_json()) == 2


def test_admin_sets_payment_status(student_client, admin_client):
    payment_id = submit_payment(student_client).get_json()['id']

    assert student_client.put(f'/api/payments/{payment_id}', json={'status': 'APPROVED'}).status_code == 403

    response = admin_client.put(f'/api/payments/{payment_id}', json={'status': 'APPROVED'})
    assert response.status_code == 200
    assert response.get_json()['status'] == 'APPROVED'

    response = admin_client.put(f'/api/payments/{payment_id}', json={'status': 'PAID'})
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Invalid status'

    assert admin_client.put('/api/payments/missing', json={'status': 'APPROVED'}).status_code == 404


# Pages

def test_donation_page_flow(client):
    assert client.get('/en/donation').status_code == 200

    response = client.post('/en/donation', data=DONOR)
    assert response.status_code == 302
    donation = Donation.query.one()
    assert f'/en/donation/payment?id={donation.id}' in response.headers['Location']

    page = client.get(f'/en/donation/payment?id={donation.id}')
    assert page.status_code == 200
    assert '500000' in page.get_data(as_text=True)

    with patch('quranic_complex.services.donations.email_service.send_thanks_email'):
        response = client.post(f'/en/donation/payment?id={donation.id}',
                               data={'receipt': png_file('receipt.png')}, content_type='multipart/form-data')
    assert response.status_code == 302
    assert donation.receipt.startswith('/uploads/receipts/')


def test_donation_payment_page_unknown_donation(client):
    assert client.get('/en/donation/payment?id=missing').status_code == 404
    assert client.get('/en/donation/payment').status_code == 404


def test_donation_page_prefills_signed_in_user(student_client):
    html = student_client.get('/en/donation').get_data(as_text=True)
    assert 'student@example.com' in html


def test_charity_page(client, student_client):
    assert '/auth/login' in client.get('/en/charity').headers['Location']

    response = student_client.post('/en/charity', data={'image': png_file(), 'description': 'Zakat'},
                                   content_type='multipart/form-data')
    assert response.status_code == 302
    assert Payment.query.one().description == 'Zakat'
    assert 'Zakat' in student_client.get('/en/charity').get_data(as_text=True)


def test_admin_donation_and_payment_pages(client, student_client, admin_client):
    donate(client)
    payment_id = submit_payment(student_client).get_json()['id']

    assert 'donor@example.com' in admin_client.get('/admin/donations').get_data(as_text=True)
    assert admin_client.get('/admin/payments').status_code == 200

    response = admin_client.post(f'/admin/payments/{payment_id}/status', data={'status': 'REJECTED'})
    assert response.status_code == 302
    assert db.session.get(Payment, payment_id).status == 'REJECTED'
