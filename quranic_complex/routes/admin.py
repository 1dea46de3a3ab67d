import logging
from flask import Blueprint, render_template, redirect, url_for, flash, request
from quranic_complex.decorators import role_required
from quranic_complex.forms import (AdminNewsForm, AdminProgramForm, AdminGalleryForm, AdminEventForm,
                                   locale_choices, submitted_data)
from quranic_complex.i18n import resolve_locale
from quranic_complex.routes.api import uploaded
from quranic_complex.services import (news as news_service, programs as program_service,
                                      gallery as gallery_service, events as event_service,
                                      users as user_service, contacts as contact_service,
                                      donations as donation_service, payments as payment_service)
from quranic_complex.services.errors import ServiceError

logger = logging.getLogger(__name__)

bp = Blueprint('admin', __name__, url_prefix='/admin')


def _admin_locale():
    return resolve_locale(request.values.get('locale'))


def _with_locales(form, locale):
    form.locale.choices = locale_choices()
    if not form.is_submitted():
        form.locale.data = locale
    return form


def _render_form(form, title, cancel_url):
    return render_template('admin/form.html', form=form, title=title, cancel_url=cancel_url)


def _merge_translation(translations, locale, values):
    """Replace or append the translation for locale, keeping the others."""
    merged = []
    replaced = False
    for translation in translations:
        if translation['locale'] == locale:
            merged.append(dict(values, locale=locale))
            replaced = True
        else:
            merged.append(translation)
    if not replaced:
        merged.append(dict(values, locale=locale))
    return merged


@bp.route('/')
@role_required('ADMIN')
def index():
    locale = _admin_locale()
    counts = {
        'news': len(news_service.list_news(locale, limit=None)),
        'programs': len(program_service.list_programs(locale)),
        'gallery': len(gallery_service.list_gallery(locale)),
        'events': len(event_service.list_upcoming_events(locale)),
        'users': len(user_service.list_users()),
        'contacts': len(contact_service.list_contacts()),
        'donations': len(donation_service.list_donations()),
        'payments': len(payment_service.list_payments()),
    }
    return render_template('admin/index.html', counts=counts)


# News

@bp.route('/news')
@role_required('ADMIN')
def news_list():
    locale = _admin_locale()
    return render_template('admin/news.html', items=news_service.list_news(locale, limit=None),
                           admin_locale=locale)


@bp.route('/news/new', methods=['GET', 'POST'])
@role_required('ADMIN')
def news_create():
    form = _with_locales(AdminNewsForm(), _admin_locale())
    if form.validate_on_submit():
        try:
            news_service.create_news(submitted_data(form, exclude=('locale',)), form.locale.data,
                                     image=uploaded('image'))
        except ServiceError as e:
            flash(e.message, 'danger')
        else:
            flash('News item created.', 'success')
            return redirect(url_for('admin.news_list', locale=form.locale.data))
    return _render_form(form, 'New news item', url_for('admin.news_list'))


@bp.route('/news/<news_id>/edit', methods=['GET', 'POST'])
@role_required('ADMIN')
def news_edit(news_id):
    locale = _admin_locale()
    try:
        item = news_service.get_news_by_id(news_id, locale)
    except ServiceError as e:
        flash(e.message, 'danger')
        return redirect(url_for('admin.news_list'))

    form = _with_locales(AdminNewsForm(data={
        'slug': item['slug'],
        'title': item['title'],
        'content': item['content'],
        'excerpt': item['excerpt'],
        'date': item['date'],
        'meta_title': item['metaTitle'],
        'meta_description': item['metaDescription'],
        'keywords': item['keywords'],
    }), locale)
    if form.validate_on_submit():
        try:
            news_service.update_news(news_id, submitted_data(form, exclude=('locale',)), form.locale.data,
                                     image=uploaded('image'))
        except ServiceError as e:
            flash(e.message, 'danger')
        else:
            flash('News item updated.', 'success')
            return redirect(url_for('admin.news_list', locale=form.locale.data))
    return _render_form(form, 'Edit news item', url_for('admin.news_list', locale=locale))


@bp.route('/news/<news_id>/delete', methods=['POST'])
@role_required('ADMIN')
def news_delete(news_id):
    try:
        news_service.delete_news(news_id)
        flash('News item deleted.', 'success')
    except ServiceError as e:
        flash(e.message, 'danger')
    return redirect(url_for('admin.news_list'))


# Programs

@bp.route('/programs')
@role_required('ADMIN')
def programs_list():
    locale = _admin_locale()
    return render_template('admin/programs.html', items=program_service.list_programs(locale),
                           admin_locale=locale)


@bp.route('/programs/new', methods=['GET', 'POST'])
@role_required('ADMIN')
def programs_create():
    form = _with_locales(AdminProgramForm(), _admin_locale())
    if form.validate_on_submit():
        try:
            program_service.create_program(submitted_data(form, exclude=('locale',)), form.locale.data,
                                           image=uploaded('image'))
        except ServiceError as e:
            flash(e.message, 'danger')
        else:
            flash('Program created.', 'success')
            return redirect(url_for('admin.programs_list', locale=form.locale.data))
    return _render_form(form, 'New program', url_for('admin.programs_list'))


@bp.route('/programs/<program_id>/edit', methods=['GET', 'POST'])
@role_required('ADMIN')
def programs_edit(program_id):
    locale = _admin_locale()
    try:
        program = program_service.get_program_by_id(program_id, locale)
    except ServiceError as e:
        flash(e.message, 'danger')
        return redirect(url_for('admin.programs_list'))

    form = _with_locales(AdminProgramForm(data={
        'slug': program['slug'],
        'title': program['title'],
        'description': program['description'],
        'age_group': program['ageGroup'],
        'schedule': program['schedule'],
        'meta_title': program['metaTitle'],
        'meta_description': program['metaDescription'],
        'keywords': program['keywords'],
    }), locale)
    if form.validate_on_submit():
        try:
            program_service.update_program(program_id, submitted_data(form, exclude=('locale',)),
                                           form.locale.data, image=uploaded('image'))
        except ServiceError as e:
            flash(e.message, 'danger')
        else:
            flash('Program updated.', 'success')
            return redirect(url_for('admin.programs_list', locale=form.locale.data))
    return _render_form(form, 'Edit program', url_for('admin.programs_list', locale=locale))


@bp.route('/programs/<program_id>/delete', methods=['POST'])
@role_required('ADMIN')
def programs_delete(program_id):
    try:
        program_service.delete_program(program_id)
        flash('Program deleted.', 'success')
    except ServiceError as e:
        flash(e.message, 'danger')
    return redirect(url_for('admin.programs_list'))


# Gallery

@bp.route('/gallery')
@role_required('ADMIN')
def gallery_list():
    locale = _admin_locale()
    return render_template('admin/gallery.html', items=gallery_service.list_gallery(locale),
                           categories=gallery_service.list_categories(), admin_locale=locale)


@bp.route('/gallery/new', methods=['GET', 'POST'])
@role_required('ADMIN')
def gallery_create():
    form = _with_locales(AdminGalleryForm(), _admin_locale())
    if form.validate_on_submit():
        translation = {'locale': form.locale.data, 'title': form.title.data,
                       'description': form.description.data or None}
        try:
            gallery_service.create_gallery_item(form.category.data, [translation], uploaded('image'))
        except ServiceError as e:
            flash(e.message, 'danger')
        else:
            flash('Gallery item created.', 'success')
            return redirect(url_for('admin.gallery_list', locale=form.locale.data))
    return _render_form(form, 'New gallery item', url_for('admin.gallery_list'))


@bp.route('/gallery/<item_id>/edit', methods=['GET', 'POST'])
@role_required('ADMIN')
def gallery_edit(item_id):
    locale = _admin_locale()
    try:
        item = gallery_service.get_gallery_item(item_id)
    except ServiceError as e:
        flash(e.message, 'danger')
        return redirect(url_for('admin.gallery_list'))

    current = next((t for t in item['translations'] if t['locale'] == locale), {})
    form = _with_locales(AdminGalleryForm(data={
        'category': item['category'],
        'title': current.get('title'),
        'description': current.get('description'),
    }), locale)
    if form.validate_on_submit():
        translations = _merge_translation(item['translations'], form.locale.data, {
            'title': form.title.data, 'description': form.description.data or None,
        })
        try:
            gallery_service.update_gallery_item(item_id, category=form.category.data or '',
                                                translations=translations, image=uploaded('image'))
        except ServiceError as e:
            flash(e.message, 'danger')
        else:
            flash('Gallery item updated.', 'success')
            return redirect(url_for('admin.gallery_list', locale=form.locale.data))
    return _render_form(form, 'Edit gallery item', url_for('admin.gallery_list', locale=locale))


@bp.route('/gallery/<item_id>/delete', methods=['POST'])
@role_required('ADMIN')
def gallery_delete(item_id):
    try:
        gallery_service.delete_gallery_item(item_id)
        flash('Gallery item deleted.', 'success')
    except ServiceError as e:
        flash(e.message, 'danger')
    return redirect(url_for('admin.gallery_list'))


@bp.route('/gallery/categories/delete', methods=['POST'])
@role_required('ADMIN')
def gallery_category_delete():
    name = request.form.get('name')
    if name:
        count = gallery_service.delete_category(name, request.form.get('replacement') or None)
        flash(f'Category removed from {count} items.', 'success')
    return redirect(url_for('admin.gallery_list'))


# Events

def _event_data(form):
    return {'date': form.date.data, 'time': form.time.data, 'location': form.location.data}


@bp.route('/events')
@role_required('ADMIN')
def events_list():
    locale = _admin_locale()
    return render_template('admin/events.html', items=event_service.list_upcoming_events(locale),
                           admin_locale=locale)


@bp.route('/events/new', methods=['GET', 'POST'])
@role_required('ADMIN')
def events_create():
    form = _with_locales(AdminEventForm(), _admin_locale())
    if form.validate_on_submit():
        translation = {'locale': form.locale.data, 'name': form.name.data, 'description': form.description.data}
        try:
            event_service.create_event(_event_data(form), [translation], uploaded('image'))
        except ServiceError as e:
            flash(e.message, 'danger')
        else:
            flash('Event created.', 'success')
            return redirect(url_for('admin.events_list', locale=form.locale.data))
    return _render_form(form, 'New event', url_for('admin.events_list'))


@bp.route('/events/<event_id>/edit', methods=['GET', 'POST'])
@role_required('ADMIN')
def events_edit(event_id):
    locale = _admin_locale()
    try:
        event = event_service.get_event(event_id)
    except ServiceError as e:
        flash(e.message, 'danger')
        return redirect(url_for('admin.events_list'))

    current = next((t for t in event['translations'] if t['locale'] == locale), {})
    form = _with_locales(AdminEventForm(data={
        'name': current.get('name'),
        'description': current.get('description'),
        'date': event['date'],
        'time': event['time'],
        'location': event['location'],
    }), locale)
    if form.validate_on_submit():
        translations = _merge_translation(event['translations'], form.locale.data, {
            'name': form.name.data, 'description': form.description.data,
        })
        try:
            event_service.update_event(event_id, _event_data(form), translations, uploaded('image'))
        except ServiceError as e:
            flash(e.message, 'danger')
        else:
            flash('Event updated.', 'success')
            return redirect(url_for('admin.events_list', locale=form.locale.data))
    return _render_form(form, 'Edit event', url_for('admin.events_list', locale=locale))


@bp.route('/events/<event_id>/delete', methods=['POST'])
@role_required('ADMIN')
def events_delete(event_id):
    try:
        event_service.delete_event(event_id)
        flash('Event deleted.', 'success')
    except ServiceError as e:
        flash(e.message, 'danger')
    return redirect(url_for('admin.events_list'))


# Users and contacts

@bp.route('/users')
@role_required('ADMIN')
def users_list():
    return render_template('admin/users.html', users=user_service.list_users())


@bp.route('/users/<user_id>/verify', methods=['POST'])
@role_required('ADMIN')
def users_verify(user_id):
    try:
        user = user_service.verify_user_email(user_id)
        flash(f'Email of {user["email"]} marked as verified.', 'success')
    except ServiceError as e:
        flash(e.message, 'danger')
    return redirect(url_for('admin.users_list'))


@bp.route('/contacts')
@role_required('ADMIN')
def contacts_list():
    return render_template('admin/contacts.html', contacts=contact_service.list_contacts())


@bp.route('/contacts/<contact_id>/delete', methods=['POST'])
@role_required('ADMIN')
def contacts_delete(contact_id):
    try:
        contact_service.delete_contact(contact_id)
        flash('Contact message deleted.', 'success')
    except ServiceError as e:
        flash(e.message, 'danger')
    return redirect(url_for('admin.contacts_list'))


# Donations and payments

@bp.route('/donations')
@role_required('ADMIN')
def donations_list():
    return render_template('admin/donations.html', donations=donation_service.list_donations())


@bp.route('/payments')
@role_required('ADMIN')
def payments_list():
    return render_template('admin/payments.html', payments=payment_service.list_payments())


@bp.route('/payments/<payment_id>/status', methods=['POST'])
@role_required('ADMIN')
def payments_status(payment_id):
    try:
        payment_service.set_payment_status(payment_id, request.form.get('status'))
        flash('Payment status has been updated.', 'success')
    except ServiceError as e:
        flash(e.message, 'danger')
    return redirect(url_for('admin.payments_list'))


# AI assistant

@bp.route('/ai-agent')
@role_required('ADMIN')
def ai_agent():
    return render_template('admin/ai_agent.html')
