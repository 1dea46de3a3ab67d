from flask import (Blueprint, render_template, redirect, url_for, flash, jsonify,
                   abort, session, current_app, send_from_directory, request)
from quranic_complex.decorators import get_current_user, auth_required
from quranic_complex.forms import ContactForm, DonationForm, ReceiptForm, PaymentForm, TextToSpeechForm
from quranic_complex.i18n import is_supported, translate
from quranic_complex.routes.api import uploaded
from quranic_complex.routes.speech import speak
from quranic_complex.services import (programs as program_service, news as news_service,
                                      gallery as gallery_service, events as event_service,
                                      contacts as contact_service, donations as donation_service,
                                      payments as payment_service)
from quranic_complex.services.errors import NotFound, ServiceError

bp = Blueprint('main', __name__)


@bp.url_value_preprocessor
def check_locale(endpoint, values):
    locale = (values or {}).get('locale')
    if locale is None:
        return
    if not is_supported(locale):
        abort(404)
    session['locale'] = locale


@bp.route('/health')
def health():
    return jsonify({'status': 'ok'}), 200


@bp.route('/')
def index():
    return redirect(url_for('main.home', locale=session.get('locale') or current_app.config['DEFAULT_LOCALE']))


@bp.route('/uploads/<path:filename>')
def uploads(filename):
    return send_from_directory(current_app.config['UPLOAD_FOLDER'], filename)


@bp.route('/<locale>/')
def home(locale):
    return render_template('main/home.html',
                           news=news_service.latest_news(limit=3, locale=locale),
                           events=event_service.list_upcoming_events(locale)[:3],
                           programs=program_service.list_programs(locale))


@bp.route('/<locale>/programs')
def programs(locale):
    return render_template('main/programs.html', programs=program_service.list_programs(locale))


@bp.route('/<locale>/programs/<slug>')
def program_detail(locale, slug):
    try:
        program = program_service.get_program(slug, locale)
    except NotFound:
        abort(404)
    return render_template('main/program_detail.html', program=program)


@bp.route('/<locale>/news')
def news(locale):
    return render_template('main/news.html', news=news_service.list_news(locale))


@bp.route('/<locale>/news/<slug>')
def news_detail(locale, slug):
    try:
        item = news_service.get_news(slug, locale)
    except NotFound:
        abort(404)
    return render_template('main/news_detail.html', item=item)


@bp.route('/<locale>/gallery')
def gallery(locale):
    return render_template('main/gallery.html',
                           items=gallery_service.list_gallery(locale),
                           categories=gallery_service.list_categories())


@bp.route('/<locale>/events')
def events(locale):
    return render_template('main/events.html', events=event_service.list_upcoming_events(locale))


@bp.route('/<locale>/about')
def about(locale):
    return render_template('main/about.html')


@bp.route('/<locale>/contact', methods=['GET', 'POST'])
def contact(locale):
    form = ContactForm()
    user = get_current_user()
    if not form.is_submitted() and user.is_authenticated:
        form.name.data = user.name
        form.email.data = user.email

    if form.validate_on_submit():
        contact_service.create_contact({
            'name': form.name.data,
            'email': form.email.data,
            'phone': form.phone.data,
            'subject': form.subject.data,
            'message': form.message.data,
        })
        flash(translate('contact.sent', locale), 'success')
        return redirect(url_for('main.contact', locale=locale))

    return render_template('main/contact.html', form=form)


@bp.route('/<locale>/donation', methods=['GET', 'POST'])
def donation(locale):
    form = DonationForm()
    user = get_current_user()
    if not form.is_submitted() and user.is_authenticated:
        form.name.data = user.name
        form.email.data = user.email
        form.phone.data = user.phone

    if form.validate_on_submit():
        created = donation_service.create_donation({
            'name': form.name.data,
            'email': form.email.data,
            'phone': form.phone.data,
            'amount': form.amount.data,
        })
        return redirect(url_for('main.donation_payment', locale=locale, id=created['id']))

    return render_template('main/donation.html', form=form)


@bp.route('/<locale>/donation/payment', methods=['GET', 'POST'])
def donation_payment(locale):
    try:
        item = donation_service.get_donation(request.args.get('id'))
    except NotFound:
        abort(404)

    form = ReceiptForm()
    if form.validate_on_submit():
        try:
            donation_service.upload_receipt(item['id'], uploaded('receipt'))
        except ServiceError as e:
            flash(e.message, 'danger')
        else:
            flash(translate('donation.thanks', locale), 'success')
            return redirect(url_for('main.home', locale=locale))

    return render_template('main/donation_payment.html', form=form, donation=item,
                           card_number=current_app.config['DONATION_CARD_NUMBER'])


@bp.route('/<locale>/charity', methods=['GET', 'POST'])
@auth_required
def charity(locale):
    form = PaymentForm()
    user = get_current_user()
    if form.validate_on_submit():
        try:
            payment_service.create_payment(user.id, uploaded('image'), form.description.data)
        except ServiceError as e:
            flash(e.message, 'danger')
        else:
            flash(translate('charity.submitted', locale), 'success')
            return redirect(url_for('main.charity', locale=locale))

    return render_template('main/charity.html', form=form,
                           payments=payment_service.list_payments(user.id),
                           card_number=current_app.config['DONATION_CARD_NUMBER'])


@bp.route('/<locale>/tts', methods=['GET', 'POST'])
@auth_required
def tts(locale):
    form = TextToSpeechForm()
    audio_url = None
    if form.validate_on_submit():
        try:
            audio_url = speak(form.text.data)
        except ServiceError as e:
            flash(f'Failed to generate speech: {e.message}', 'danger')
    return render_template('main/tts.html', form=form, audio_url=audio_url)
