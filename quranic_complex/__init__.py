import logging
from flask import Flask
from flask_bcrypt import Bcrypt
from flask_socketio import SocketIO
from flask_sqlalchemy import SQLAlchemy
from flask_wtf.csrf import CSRFProtect
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
socketio = SocketIO()
csrf = CSRFProtect()


def configure_logging(app):
    logger = logging.getLogger('quranic_complex')
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s'))
        logger.addHandler(handler)
    logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    configure_logging(app)

    db.init_app(app)
    bcrypt.init_app(app)
    csrf.init_app(app)

    # Hosted blob storage is optional; local uploads are used without a bucket
    if app.config.get('FIREBASE_STORAGE_BUCKET'):
        from quranic_complex.firebase_init import init_firebase
        init_firebase(app.config['FIREBASE_STORAGE_BUCKET'])

    # CORS origins
    allowed_origins = []
    cors_origins = app.config.get('CORS_ALLOWED_ORIGINS', '')
    if cors_origins:
        for origin in cors_origins.split(','):
            origin = origin.strip()
            if origin:
                allowed_origins.append(origin)

    # Handlers must be registered before init_app creates the server
    from quranic_complex import events as socket_events  # noqa: F401

    socketio.init_app(
        app,
        cors_allowed_origins=allowed_origins if allowed_origins else None,
        async_mode=app.config.get('SOCKETIO_ASYNC_MODE', 'eventlet')
    )

    # Register current_user context processor and before_request
    from quranic_complex.decorators import load_current_user, get_current_user
    from quranic_complex import i18n

    @app.before_request
    def before_request():
        load_current_user()

    @app.context_processor
    def inject_globals():
        locale = i18n.get_locale()
        return {
            'current_user': get_current_user(),
            'locale': locale,
            'locales': app.config['LOCALES'],
            'is_rtl': i18n.is_rtl(locale),
            't': i18n.translate,
        }

    # Register blueprints
    from quranic_complex.routes import (
        main, auth, dashboard, admin, api,
        programs, news, gallery, events, contact, users, auth_api, chat,
        donations, payments, speech
    )
    app.register_blueprint(main.bp)
    app.register_blueprint(auth.bp)
    app.register_blueprint(dashboard.bp)
    app.register_blueprint(admin.bp)

    for module in (programs, news, gallery, events, contact, users, auth_api, chat,
                   donations, payments, speech):
        csrf.exempt(module.bp)
        app.register_blueprint(module.bp)

    api.register_error_handlers(app)

    with app.app_context():
        from quranic_complex import models  # noqa: F401
        db.create_all()

    return app
