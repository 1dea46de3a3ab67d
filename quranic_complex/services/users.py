import logging
from datetime import datetime
from quranic_complex import db
from quranic_complex.models import User
from quranic_complex.services.errors import Conflict, NotFound
from quranic_complex.services.storage import staged_image

logger = logging.getLogger(__name__)

FIELDS = ('name', 'email', 'phone', 'role', 'status', 'national_code', 'date_of_birth', 'quranic_study_level')
REQUIRED_FIELDS = ('email', 'role', 'status')


def normalize_email(email):
    return (email or '').strip().lower()


def _require_user(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound('User not found')
    return user


def list_users():
    return [u.to_dict() for u in User.query.order_by(User.created_at.desc()).all()]


def get_user(user_id):
    return _require_user(user_id).to_dict()


def update_user(user_id, data, image=None, national_card_picture=None):
    """Partially update a user; new pictures replace and remove the old files."""
    user = _require_user(user_id)

    if data.get('email'):
        data = dict(data, email=normalize_email(data['email']))
    email = data.get('email')
    if email and email != user.email and User.query.filter_by(email=email).first():
        raise Conflict('User with this email already exists')
    code = data.get('national_code')
    if code and code != user.national_code and User.query.filter_by(national_code=code).first():
        raise Conflict('User with this national code already exists')

    with staged_image(user.image, upload=image, folder='avatars') as image_url, \
            staged_image(user.national_card_picture, upload=national_card_picture,
                         folder='national-cards') as card_url:
        user.image = image_url
        user.national_card_picture = card_url
        for field in FIELDS:
            if field not in data:
                continue
            value = data[field]
            if field == 'date_of_birth' and isinstance(value, datetime):
                value = value.date()
            if value in ('', None):
                if field in REQUIRED_FIELDS:
                    continue
                value = None
            setattr(user, field, value)
        db.session.commit()

    logger.info('Updated user %s', user.id)
    return user.to_dict()


def verify_user_email(user_id):
    user = _require_user(user_id)
    user.email_verified = datetime.utcnow()
    db.session.commit()
    logger.info('Marked email of user %s as verified', user.id)
    return user.to_dict()
