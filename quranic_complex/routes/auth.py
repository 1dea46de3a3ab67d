import logging
from urllib.parse import urlparse
from flask import Blueprint, render_template, redirect, url_for, flash, request

from quranic_complex.decorators import get_current_user, login_user, logout_user
from quranic_complex.forms import (RegistrationForm, LoginForm, RequestLoginCodeForm,
                                   LoginCodeForm, submitted_data)
from quranic_complex.i18n import translate, auth_error_message
from quranic_complex.services import auth as auth_service
from quranic_complex.services.errors import ServiceError

logger = logging.getLogger(__name__)

bp = Blueprint('auth', __name__, url_prefix='/auth')


def is_safe_url(target):
    if not target:
        return False
    ref_url = urlparse(request.host_url)
    test_url = urlparse(target)
    return test_url.scheme in ('', 'http', 'https') and ref_url.netloc == test_url.netloc


def _redirect_after_login(user):
    next_page = request.args.get('next')
    if next_page and is_safe_url(next_page):
        return redirect(next_page)
    if user.is_admin():
        return redirect(url_for('admin.index'))
    return redirect(url_for('dashboard.index'))


@bp.route('/register', methods=['GET', 'POST'])
def register():
    if get_current_user().is_authenticated:
        return redirect(url_for('dashboard.index'))

    form = RegistrationForm()
    if form.validate_on_submit():
        picture = form.national_card_picture.data
        if not picture:
            form.national_card_picture.errors.append('National card picture is required')
            return render_template('auth/register.html', form=form)
        try:
            auth_service.register_user(submitted_data(form), picture)
        except ServiceError as e:
            flash(e.message, 'danger')
            return render_template('auth/register.html', form=form)
        flash(translate('auth.register.success'), 'success')
        return redirect(url_for('auth.login'))

    return render_template('auth/register.html', form=form)


@bp.route('/login', methods=['GET', 'POST'])
def login():
    if get_current_user().is_authenticated:
        return redirect(url_for('dashboard.index'))

    if request.args.get('verified') == 'true':
        flash(translate('auth.verified'), 'success')

    form = LoginForm()
    if form.validate_on_submit():
        try:
            user = auth_service.authenticate_credentials(form.email.data, form.password.data)
        except auth_service.AuthError as e:
            return redirect(url_for('auth.error', error=e.code))
        login_user(user)
        logger.info('User %s signed in with password', user.id)
        return _redirect_after_login(user)

    return render_template('auth/login.html', form=form)


@bp.route('/login-code', methods=['GET', 'POST'])
def request_login_code():
    form = RequestLoginCodeForm()
    if form.validate_on_submit():
        try:
            auth_service.request_login_code(form.email.data)
        except ServiceError as e:
            logger.error('Login code for %s was not sent: %s', form.email.data, e.message)
        flash(translate('auth.login_code.sent'), 'info')
        return redirect(url_for('auth.verify_login_code', email=form.email.data))

    return render_template('auth/request_code.html', form=form)


@bp.route('/login-code/verify', methods=['GET', 'POST'])
def verify_login_code():
    form = LoginCodeForm()
    if request.method == 'GET' and request.args.get('email'):
        form.email.data = request.args['email']

    if form.validate_on_submit():
        try:
            user = auth_service.authenticate_code(form.email.data, form.code.data)
        except auth_service.AuthError as e:
            return redirect(url_for('auth.error', error=e.code))
        login_user(user)
        logger.info('User %s signed in with a login code', user.id)
        return _redirect_after_login(user)

    return render_template('auth/verify_code.html', form=form)


@bp.route('/logout')
def logout():
    logout_user()
    flash(translate('auth.logged_out'), 'info')
    return redirect(url_for('main.index'))


@bp.route('/error')
def error():
    title, message = auth_error_message(request.args.get('error'))
    return render_template('auth/error.html', title=title, message=message)
