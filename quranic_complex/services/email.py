import logging
import requests as http_requests
from flask import current_app, render_template
from quranic_complex.services.errors import ServiceError

logger = logging.getLogger(__name__)

RESEND_API_URL = 'https://api.resend.com/emails'


def send_email(to, subject, html):
    """Send an email through the Resend REST API.

    Without RESEND_API_KEY the message is logged and skipped. Returns the
    Resend message id, or None when skipped.
    """
    api_key = current_app.config.get('RESEND_API_KEY')
    if not api_key:
        logger.warning('RESEND_API_KEY is not set; skipping email "%s" to %s', subject, to)
        return None

    sender = f"{current_app.config['SITE_NAME']} <{current_app.config['EMAIL_FROM']}>"
    try:
        resp = http_requests.post(
            RESEND_API_URL,
            headers={'Authorization': f'Bearer {api_key}'},
            json={'from': sender, 'to': [to], 'subject': subject, 'html': html},
            timeout=10,
        )
    except http_requests.RequestException as e:
        logger.exception('Sending email to %s failed', to)
        raise ServiceError('Failed to send email') from e

    if resp.status_code >= 400:
        logger.error('Resend rejected email to %s: %s %s', to, resp.status_code, resp.text)
        raise ServiceError('Failed to send email')

    message_id = resp.json().get('id')
    logger.info('Sent email "%s" to %s (%s)', subject, to, message_id)
    return message_id


def send_verification_email(to, name, token):
    site_url = current_app.config['SITE_URL'].rstrip('/')
    link = f'{site_url}/api/auth/verify-email?token={token}'
    html = render_template('emails/verify_email.html', name=name, link=link,
                           site_name=current_app.config['SITE_NAME'])
    return send_email(to, f"Verify your email for {current_app.config['SITE_NAME']}", html)


def send_login_code_email(to, code):
    html = render_template('emails/login_code.html', code=code,
                           minutes=current_app.config['LOGIN_CODE_TTL_MINUTES'],
                           site_name=current_app.config['SITE_NAME'])
    return send_email(to, f"Your {current_app.config['SITE_NAME']} login code", html)


def send_thanks_email(to, name):
    html = render_template('emails/thanks.html', name=name,
                           site_name=current_app.config['SITE_NAME'])
    return send_email(to, 'Thank You for Your Donation', html)
