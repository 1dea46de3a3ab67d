"""
Shared fixtures: an app on an in-memory database, upload folder in tmp,
sample admin and student accounts and clients signed in as either.
"""
import io
from datetime import datetime
import pytest

from config import Config
from quranic_complex import create_app, db
from quranic_complex.models import User

PNG_BYTES = (b'\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01'
             b'\x08\x06\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\x9cc\xf8\x0f\x00'
             b'\x01\x01\x01\x00\x18\xdd\x8d\xb4\x00\x00\x00\x00IEND\xaeB`\x82')


class ConfigForTests(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    SOCKETIO_ASYNC_MODE = 'threading'
    FIREBASE_STORAGE_BUCKET = ''
    GOOGLE_GENERATIVE_AI_API_KEY = 'test-key'
    RESEND_API_KEY = None
    LOG_LEVEL = 'WARNING'


@pytest.fixture
def app(tmp_path):
    app = create_app(ConfigForTests)
    app.config['UPLOAD_FOLDER'] = str(tmp_path / 'uploads')
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(email, role='USER', password='password123', verified=True, **extra):
    user = User(email=email, name=extra.pop('name', email.split('@')[0]), role=role,
                email_verified=datetime.utcnow() if verified else None, **extra)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def admin(app):
    return make_user('admin@example.com', role='ADMIN', status='APPROVED')


@pytest.fixture
def student(app):
    return make_user('student@example.com', role='STUDENT', national_code='0012345678')


def sign_in(client, user):
    with client.session_transaction() as session:
        session['user_id'] = user.id
    return client


@pytest.fixture
def admin_client(app, admin):
    return sign_in(app.test_client(), admin)


@pytest.fixture
def student_client(app, student):
    return sign_in(app.test_client(), student)


def png_file(name='photo.png', data=PNG_BYTES):
    return (io.BytesIO(data), name, 'image/png')


@pytest.fixture
def upload_dir(app):
    return app.config['UPLOAD_FOLDER']
