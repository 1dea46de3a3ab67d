from functools import wraps
from flask import request, redirect, url_for, flash, g, session, jsonify
from quranic_complex import db
from quranic_complex.i18n import translate
from quranic_complex.models import User


def _load_session_user():
    """User referenced by the session cookie, if it still exists."""
    user_id = session.get('user_id')
    if not user_id:
        return None
    user = db.session.get(User, user_id)
    if user is None:
        session.pop('user_id', None)
    return user


class CurrentUser:
    """Proxy object providing attribute access to the signed in user."""

    def __init__(self, user=None):
        self._user = user

    def __getattr__(self, name):
        if name.startswith('_'):
            raise AttributeError(name)
        if self._user is None:
            return None
        return getattr(self._user, name)

    def __bool__(self):
        return self._user is not None

    @property
    def is_authenticated(self):
        return self._user is not None

    @property
    def model(self):
        return self._user

    @property
    def role(self):
        return self._user.role if self._user else None

    @property
    def display_name(self):
        if self._user is None:
            return ''
        return self._user.name or self._user.email

    @property
    def initial(self):
        name = self.display_name
        return name[0].upper() if name else '?'

    def is_admin(self):
        return self.role == 'ADMIN'


def load_current_user():
    """Load current user into g before each request."""
    g._current_user = CurrentUser(_load_session_user())


def get_current_user():
    if not hasattr(g, '_current_user'):
        load_current_user()
    return g._current_user


def login_user(user):
    session.clear()
    session['user_id'] = user.id
    session.permanent = True
    g._current_user = CurrentUser(user)


def logout_user():
    session.pop('user_id', None)
    g._current_user = CurrentUser()


def _page_denial(user, roles):
    """Redirect for a page the user may not open, or None."""
    if not user.is_authenticated:
        flash(translate('auth.login_required'), 'info')
        return redirect(url_for('auth.login', next=request.url))
    if roles and user.role not in roles:
        flash(translate('auth.access_denied'), 'danger')
        return redirect(url_for('dashboard.index'))
    return None


def _api_denial(user, roles):
    if not user.is_authenticated:
        return jsonify({'message': 'Unauthorized'}), 401
    if roles and user.role not in roles:
        return jsonify({'message': 'Forbidden'}), 403
    return None


def _guard(denial, roles):
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            user = get_current_user()
            response = denial(user, roles)
            if response is not None:
                return response
            g.current_user = user
            return f(*args, **kwargs)
        return decorated
    return decorator


def auth_required(f):
    return _guard(_page_denial, ())(f)


def role_required(*roles):
    return _guard(_page_denial, roles)


def api_auth_required(f):
    return _guard(_api_denial, ())(f)


def api_role_required(*roles):
    return _guard(_api_denial, roles)
