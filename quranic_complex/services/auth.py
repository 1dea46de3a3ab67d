import logging
import secrets
from datetime import datetime, timedelta
from flask import current_app
from quranic_complex import db
from quranic_complex.models import User, VerificationToken
from quranic_complex.services import email as email_service
from quranic_complex.services.errors import Conflict, ServiceError
from quranic_complex.services.storage import staged_image
from quranic_complex.services.users import normalize_email

logger = logging.getLogger(__name__)

NATIONAL_CARD_TYPES = ('image/jpeg', 'image/png')


class AuthError(Exception):
    """Sign-in failure carrying one of the fixed auth error codes."""

    def __init__(self, code):
        super().__init__(code)
        self.code = code


def register_user(data, national_card_picture):
    """Create a STUDENT account and email its verification link."""
    email = normalize_email(data['email'])
    if User.query.filter_by(email=email).first():
        raise Conflict('User with this email already exists')
    if User.query.filter_by(national_code=data['national_code']).first():
        raise Conflict('User with this national code already exists')

    with staged_image(None, upload=national_card_picture, folder='national-cards',
                      allowed_types=NATIONAL_CARD_TYPES) as picture_url:
        user = User(
            name=data['name'],
            email=email,
            phone=data.get('phone') or None,
            date_of_birth=data['date_of_birth'],
            national_code=data['national_code'],
            quranic_study_level=data['quranic_study_level'],
            national_card_picture=picture_url,
            role='STUDENT',
            status='PENDING',
        )
        user.set_password(data['password'])
        db.session.add(user)

        token = VerificationToken(
            identifier=email,
            token=secrets.token_hex(32),
            expires=datetime.utcnow() + timedelta(hours=current_app.config['VERIFICATION_TOKEN_TTL_HOURS']),
        )
        db.session.add(token)
        db.session.commit()

    logger.info('Registered user %s', email)
    try:
        email_service.send_verification_email(email, user.name, token.token)
    except ServiceError:
        # The account exists; the user can still sign in with an emailed code later.
        logger.error('Verification email for %s was not sent', email)
    return user


def authenticate_credentials(email, password):
    user = User.query.filter_by(email=normalize_email(email)).first()
    if user is None or not user.check_password(password):
        raise AuthError('CredentialsSignin')
    if user.email_verified is None:
        raise AuthError('EmailNotVerified')
    return user


def request_login_code(email):
    """Email a one-time 6 digit code; unknown addresses are silently ignored."""
    user = User.query.filter_by(email=normalize_email(email)).first()
    if user is None:
        logger.info('Login code requested for unknown email %s', email)
        return False

    user.login_code = f'{secrets.randbelow(10 ** 6):06d}'
    user.login_code_expires = datetime.utcnow() + timedelta(minutes=current_app.config['LOGIN_CODE_TTL_MINUTES'])
    db.session.commit()

    email_service.send_login_code_email(user.email, user.login_code)
    return True


def authenticate_code(email, code):
    user = User.query.filter_by(email=normalize_email(email)).first()
    if user is None or not user.login_code or not secrets.compare_digest(user.login_code, code or ''):
        raise AuthError('Invalid login code')
    if user.login_code_expires is None or user.login_code_expires < datetime.utcnow():
        user.login_code = None
        user.login_code_expires = None
        db.session.commit()
        raise AuthError('Login code expired')

    user.login_code = None
    user.login_code_expires = None
    if user.email_verified is None:
        user.email_verified = datetime.utcnow()
    db.session.commit()
    return user


def verify_email_token(token):
    """Consume an email verification token.

    Returns the error code on failure, or None once the email is verified.
    """
    if not token:
        return 'VerificationMissingToken'

    record = VerificationToken.query.filter_by(token=token).first()
    if record is None:
        return 'VerificationInvalidToken'

    if record.expires < datetime.utcnow():
        db.session.delete(record)
        db.session.commit()
        return 'VerificationExpiredToken'

    user = User.query.filter_by(email=record.identifier).first()
    if user is None:
        return 'VerificationUserNotFound'

    user.email_verified = datetime.utcnow()
    db.session.delete(record)
    db.session.commit()
    logger.info('Verified email %s', user.email)
    return None
