from flask import Blueprint, jsonify
from quranic_complex.decorators import api_auth_required, api_role_required, get_current_user
from quranic_complex.forms import UserUpdateForm, submitted_data
from quranic_complex.routes.api import validate_or_raise, uploaded
from quranic_complex.services import users as user_service

bp = Blueprint('users', __name__, url_prefix='/api/users')

# Fields only an admin may change
ADMIN_FIELDS = ('role', 'status', 'email')


@bp.route('', methods=['GET'])
@api_role_required('ADMIN')
def list_users():
    return jsonify(user_service.list_users())


@bp.route('/<user_id>', methods=['GET'])
@api_auth_required
def get_user(user_id):
    current_user = get_current_user()
    if not current_user.is_admin() and current_user.id != user_id:
        return jsonify({'message': 'Forbidden'}), 403
    return jsonify(user_service.get_user(user_id))


@bp.route('/<user_id>', methods=['PATCH'])
@api_auth_required
def update_user(user_id):
    current_user = get_current_user()
    if not current_user.is_admin() and current_user.id != user_id:
        return jsonify({'message': 'Forbidden'}), 403

    form = UserUpdateForm()
    validate_or_raise(form, 'Invalid user data')
    data = submitted_data(form)
    if not current_user.is_admin():
        for field in ADMIN_FIELDS:
            data.pop(field, None)

    user = user_service.update_user(
        user_id, data,
        image=uploaded('image'),
        national_card_picture=uploaded('nationalCardPicture'),
    )
    return jsonify(user)


@bp.route('/<user_id>/verify-email', methods=['POST'])
@api_role_required('ADMIN')
def verify_email(user_id):
    user = user_service.verify_user_email(user_id)
    return jsonify({'message': 'Email verified successfully', 'user': user})
