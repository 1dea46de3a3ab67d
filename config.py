import os
from dotenv import load_dotenv

load_dotenv()

basedir = os.path.abspath(os.path.dirname(__file__))


class Config:
    SECRET_KEY = os.environ.get('SESSION_SECRET') or os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///' + os.path.join(basedir, 'quranic_complex.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = None

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    CORS_ALLOWED_ORIGINS = os.environ.get('CORS_ALLOWED_ORIGINS', '')
    SOCKETIO_ASYNC_MODE = os.environ.get('SOCKETIO_ASYNC_MODE', 'eventlet')

    # Images
    FIREBASE_STORAGE_BUCKET = os.environ.get('FIREBASE_STORAGE_BUCKET', '')
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER') or os.path.join(basedir, 'quranic_complex', 'static', 'uploads')
    MAX_IMAGE_SIZE = 5 * 1024 * 1024
    ALLOWED_IMAGE_TYPES = ('image/jpeg', 'image/png', 'image/webp')
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024

    # Localization
    LOCALES = ('en', 'fa', 'ar')
    DEFAULT_LOCALE = 'en'
    RTL_LOCALES = ('fa', 'ar')

    # AI
    GOOGLE_GENERATIVE_AI_API_KEY = os.environ.get('GOOGLE_GENERATIVE_AI_API_KEY')
    GEMINI_CHAT_MODEL = os.environ.get('GEMINI_CHAT_MODEL', 'gemini-2.5-flash')
    GEMINI_TITLE_MODEL = os.environ.get('GEMINI_TITLE_MODEL', 'gemini-2.5-flash')
    GEMINI_IMAGE_MODEL = os.environ.get('GEMINI_IMAGE_MODEL', 'gemini-2.0-flash-preview-image-generation')
    GEMINI_TTS_MODEL = os.environ.get('GEMINI_TTS_MODEL', 'gemini-2.5-flash-preview-tts')
    TTS_DEFAULT_VOICE = os.environ.get('TTS_DEFAULT_VOICE', 'Kore')
    AI_MAX_STEPS = int(os.environ.get('AI_MAX_STEPS', 5))

    # Donations
    RECEIPT_TYPES = ('image/jpeg', 'image/png', 'image/webp', 'application/pdf')
    DONATION_CARD_NUMBER = os.environ.get('DONATION_CARD_NUMBER', '1234-5678-9012-3456')

    # Email
    RESEND_API_KEY = os.environ.get('RESEND_API_KEY')
    EMAIL_FROM = os.environ.get('EMAIL_FROM', 'onboarding@resend.dev')
    SITE_NAME = os.environ.get('SITE_NAME', 'Quranic Complex')
    SITE_URL = os.environ.get('SITE_URL', 'http://localhost:8080')

    # Auth
    LOGIN_CODE_TTL_MINUTES = 10
    VERIFICATION_TOKEN_TTL_HOURS = 24
