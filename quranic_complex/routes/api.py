import logging
from flask import request, jsonify, current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.exceptions import HTTPException, InternalServerError

from quranic_complex import db
from quranic_complex.forms import form_errors
from quranic_complex.services.errors import ServiceError, ValidationFailed

logger = logging.getLogger(__name__)


def is_api_request():
    return request.path.startswith('/api/')


def locale_arg(required=False):
    """The ?locale= query argument, validated against the configured locales."""
    locale = request.args.get('locale')
    if not locale:
        if required:
            raise ValidationFailed('Locale parameter is required')
        return current_app.config['DEFAULT_LOCALE']
    if locale not in current_app.config['LOCALES']:
        raise ValidationFailed(f'Unsupported locale "{locale}"')
    return locale


def validate_or_raise(form, message='Invalid data'):
    if not form.validate():
        raise ValidationFailed(message, errors=form_errors(form))


def uploaded(name):
    """The uploaded file under name, or None when nothing was selected."""
    file = request.files.get(name)
    if file is None or not file.filename:
        return None
    return file


def register_error_handlers(app):

    @app.errorhandler(ServiceError)
    def handle_service_error(e):
        db.session.rollback()
        if e.status_code >= 500:
            logger.error('%s %s failed: %s', request.method, request.path, e.message)
        if is_api_request():
            return jsonify(e.to_dict()), e.status_code
        return e.message, e.status_code

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(e):
        db.session.rollback()
        logger.warning('Integrity error on %s %s: %s', request.method, request.path, e.orig)
        if is_api_request():
            return jsonify({'message': 'A record with these unique values already exists.'}), 409
        return 'Conflict', 409

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        if is_api_request():
            return jsonify({'message': e.description}), e.code
        return e

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        if isinstance(e, SQLAlchemyError):
            db.session.rollback()
        logger.exception('Unhandled error on %s %s', request.method, request.path)
        if is_api_request():
            return jsonify({'message': 'Internal server error'}), 500
        return InternalServerError(original_exception=e)
