import logging
from sqlalchemy.exc import SQLAlchemyError
from flask import Blueprint, request, jsonify, redirect, url_for
from quranic_complex import db
from quranic_complex.forms import RegistrationApiForm, RequestLoginCodeApiForm, form_errors, submitted_data
from quranic_complex.routes.api import uploaded
from quranic_complex.services import auth as auth_service
from quranic_complex.services.errors import ServiceError, ValidationFailed

logger = logging.getLogger(__name__)

bp = Blueprint('auth_api', __name__, url_prefix='/api/auth')

LOGIN_CODE_MESSAGE = 'If your email is registered, you will receive a login code shortly.'


@bp.route('/register', methods=['POST'])
def register():
    form = RegistrationApiForm()
    if not form.validate():
        return jsonify({'errors': form_errors(form)}), 400
    picture = uploaded('nationalCardPicture')
    if picture is None:
        raise ValidationFailed('National card picture is required')

    auth_service.register_user(submitted_data(form), picture)
    return jsonify({'message': 'Registration successful! Please check your email to verify your account.'}), 201


@bp.route('/request-login-code', methods=['POST'])
def request_login_code():
    form = RequestLoginCodeApiForm(formdata=None, data=request.get_json(silent=True) or {})
    if not form.validate():
        return jsonify({'errors': form_errors(form)}), 400
    try:
        auth_service.request_login_code(form.email.data)
    except ServiceError as e:
        # The response never depends on whether the email is registered.
        logger.error('Login code for %s was not sent: %s', form.email.data, e.message)
    return jsonify({'message': LOGIN_CODE_MESSAGE})


@bp.route('/verify-email', methods=['GET'])
def verify_email():
    try:
        error = auth_service.verify_email_token(request.args.get('token'))
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception('Email verification failed')
        error = 'VerificationFailed'
    if error:
        logger.info('Email verification failed: %s', error)
        return redirect(url_for('auth.error', error=error))
    return redirect(url_for('auth.login', verified='true'))
