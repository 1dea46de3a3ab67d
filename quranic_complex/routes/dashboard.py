from flask import Blueprint, render_template, redirect, url_for, flash
from quranic_complex.decorators import auth_required, get_current_user
from quranic_complex.forms import ProfileForm
from quranic_complex.routes.api import uploaded
from quranic_complex.services import users as user_service
from quranic_complex.services.errors import ServiceError

bp = Blueprint('dashboard', __name__, url_prefix='/dashboard')


@bp.route('/')
@auth_required
def index():
    user = get_current_user()
    return render_template('dashboard/index.html', profile=user.model.to_dict())


@bp.route('/profile', methods=['GET', 'POST'])
@auth_required
def profile():
    user = get_current_user()
    form = ProfileForm(name=user.name, phone=user.phone)

    if form.validate_on_submit():
        try:
            user_service.update_user(user.id, {'name': form.name.data, 'phone': form.phone.data}, image=uploaded('image'))
        except ServiceError as e:
            flash(e.message, 'danger')
            return render_template('dashboard/profile.html', form=form)
        flash('Profile updated.', 'success')
        return redirect(url_for('dashboard.index'))

    return render_template('dashboard/profile.html', form=form)
