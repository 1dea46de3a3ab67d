from urllib.parse import urlparse, parse_qs
from datetime import datetime, timedelta
from unittest.mock import patch, MagicMock

from quranic_complex import db
from quranic_complex.models import User, VerificationToken

from conftest import make_user, png_file

REGISTRATION = {
    'name': 'Ali',
    'email': 'Ali@Example.com',
    'password': 'secret123',
    'dateOfBirth': '2001-02-03',
    'nationalCode': '1234567890',
    'quranicStudyLevel': 'BEGINNER',
}


def register(client, **overrides):
    data = dict(REGISTRATION, nationalCardPicture=png_file('card.png'))
    data.update(overrides)
    data = {k: v for k, v in data.items() if v is not None}
    return client.post('/api/auth/register', data=data, content_type='multipart/form-data')


def resend_ok():
    response = MagicMock(status_code=200)
    response.json.return_value = {'id': 'email-1'}
    return response


# Registration

def test_register_creates_unverified_student(app, client):
    app.config['RESEND_API_KEY'] = 'key'
    with patch('quranic_complex.services.email.http_requests.post', return_value=resend_ok()) as post:
        response = register(client)

    assert response.status_code == 201
    user = User.query.filter_by(email='ali@example.com').one()
    assert user.role == 'STUDENT'
    assert user.status == 'PENDING'
    assert user.email_verified is None
    assert user.check_password('secret123')
    assert user.national_card_picture.startswith('/uploads/national-cards/')

    token = VerificationToken.query.filter_by(identifier='ali@example.com').one()
    payload = post.call_args.kwargs['json']
    assert payload['to'] == ['ali@example.com']
    assert f'/api/auth/verify-email?token={token.token}' in payload['html']


def test_register_survives_email_failure(app, client):
    app.config['RESEND_API_KEY'] = 'key'
    with patch('quranic_complex.services.email.http_requests.post', return_value=MagicMock(status_code=500)):
        response = register(client)
    assert response.status_code == 201
    assert User.query.count() == 1


def test_register_requires_picture(client):
    response = register(client, nationalCardPicture=None)
    assert response.status_code == 400
    assert response.get_json()['message'] == 'National card picture is required'


def test_register_rejects_webp_card(client):
    response = register(client, nationalCardPicture=(png_file()[0], 'card.webp', 'image/webp'))
    assert response.status_code == 400
    assert User.query.count() == 0


def test_register_validates_fields(client):
    response = register(client, nationalCode='123', password='123')
    assert response.status_code == 400
    errors = response.get_json()['errors']
    assert 'national_code' in errors
    assert 'password' in errors


def test_register_duplicate_email(client, student):
    response = register(client, email='student@example.com', nationalCode='9999999999')
    assert response.status_code == 409
    assert response.get_json()['message'] == 'User with this email already exists'


# Email verification

def add_token(email, token='tok', expires_in=timedelta(hours=1)):
    db.session.add(VerificationToken(identifier=email, token=token, expires=datetime.utcnow() + expires_in))
    db.session.commit()


def test_verify_email_success(client):
    user = make_user('new@example.com', verified=False)
    add_token('new@example.com')

    response = client.get('/api/auth/verify-email?token=tok')
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/auth/login?verified=true')
    assert db.session.get(User, user.id).email_verified is not None
    assert VerificationToken.query.count() == 0


def test_verify_email_errors(client):
    response = client.get('/api/auth/verify-email')
    assert 'error=VerificationMissingToken' in response.headers['Location']

    response = client.get('/api/auth/verify-email?token=nope')
    assert 'error=VerificationInvalidToken' in response.headers['Location']

    make_user('late@example.com', verified=False)
    add_token('late@example.com', token='old', expires_in=timedelta(hours=-1))
    response = client.get('/api/auth/verify-email?token=old')
    assert 'error=VerificationExpiredToken' in response.headers['Location']
    assert VerificationToken.query.count() == 0

    add_token('ghost@example.com', token='ghost')
    response = client.get('/api/auth/verify-email?token=ghost')
    assert 'error=VerificationUserNotFound' in response.headers['Location']


# Login codes

def test_request_login_code_never_reveals_accounts(app, client, student):
    app.config['RESEND_API_KEY'] = 'key'
    with patch('quranic_complex.services.email.http_requests.post', return_value=resend_ok()) as post:
        unknown = client.post('/api/auth/request-login-code', json={'email': 'nobody@example.com'})
        known = client.post('/api/auth/request-login-code', json={'email': 'student@example.com'})

    assert unknown.status_code == known.status_code == 200
    assert unknown.get_json() == known.get_json()
    assert post.call_count == 1
    code = db.session.get(User, student.id).login_code
    assert len(code) == 6 and code.isdigit()
    assert code in post.call_args.kwargs['json']['html']


def test_login_with_code(client, student):
    student.login_code = '123456'
    student.login_code_expires = datetime.utcnow() + timedelta(minutes=5)
    db.session.commit()

    response = client.post('/auth/login-code/verify', data={'email': student.email, 'code': '123456'})
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/dashboard/')
    assert db.session.get(User, student.id).login_code is None
    with client.session_transaction() as session:
        assert session['user_id'] == student.id


def test_login_with_expired_code(client, student):
    student.login_code = '123456'
    student.login_code_expires = datetime.utcnow() - timedelta(minutes=1)
    db.session.commit()

    response = client.post('/auth/login-code/verify', data={'email': student.email, 'code': '123456'})
    query = parse_qs(urlparse(response.headers['Location']).query)
    assert query['error'] == ['Login code expired']


# Credentials

def test_login_with_password(client, admin):
    response = client.post('/auth/login', data={'email': 'admin@example.com', 'password': 'password123'})
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/admin/')


def test_login_wrong_password(client, admin):
    response = client.post('/auth/login', data={'email': 'admin@example.com', 'password': 'nope'})
    assert 'error=CredentialsSignin' in response.headers['Location']


def test_login_requires_verified_email(client):
    make_user('pending@example.com', verified=False)
    response = client.post('/auth/login', data={'email': 'pending@example.com', 'password': 'password123'})
    assert 'error=EmailNotVerified' in response.headers['Location']


def test_login_ignores_external_next(client, student):
    response = client.post('/auth/login?next=https://evil.example.com/',
                           data={'email': student.email, 'password': 'password123'})
    assert response.headers['Location'].endswith('/dashboard/')


def test_error_page_is_localized(client):
    response = client.get('/auth/error?error=CredentialsSignin')
    assert b'The email or password you entered is incorrect.' in response.data

    response = client.get('/auth/error?error=CredentialsSignin&lang=fa')
    assert 'ایمیل یا رمز عبور نادرست است.' in response.get_data(as_text=True)

    response = client.get('/auth/error?error=Something')
    assert b'An unexpected error occurred.' in response.data


def test_logout(student_client):
    response = student_client.get('/auth/logout')
    assert response.status_code == 302
    with student_client.session_transaction() as session:
        assert 'user_id' not in session
