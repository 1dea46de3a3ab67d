import re
import logging
from datetime import datetime
from quranic_complex import db
from quranic_complex.models import Event, EventTranslation, isoformat
from quranic_complex.services.errors import Conflict, NotFound, ValidationFailed
from quranic_complex.services.storage import staged_image, discard_file, check_image

logger = logging.getLogger(__name__)

FOLDER = 'events'


def slugify(name):
    return re.sub(r'\s+', '-', name.strip().lower())


def to_dto(event, translation):
    return {
        'id': event.id,
        'slug': event.slug,
        'name': translation.name if translation else None,
        'description': translation.description if translation else None,
        'date': isoformat(event.date),
        'time': event.time,
        'location': event.location,
        'image': event.image,
    }


def to_detail(event):
    return {
        'id': event.id,
        'slug': event.slug,
        'date': isoformat(event.date),
        'time': event.time,
        'location': event.location,
        'image': event.image,
        'translations': [
            {'locale': t.locale, 'name': t.name, 'description': t.description}
            for t in sorted(event.translations, key=lambda t: t.locale)
        ],
    }


def _require_event(event_id):
    event = db.session.get(Event, event_id)
    if event is None:
        raise NotFound('Event not found')
    return event


def _slug_for(translations, event_id=None):
    if not translations:
        return None
    slug = slugify(translations[0]['name'])
    existing = Event.query.filter_by(slug=slug).first()
    if existing and existing.id != event_id:
        raise Conflict(f'An event with slug "{slug}" already exists.')
    return slug


def _sync_translations(event, translations):
    wanted = {t['locale']: t for t in translations}
    for translation in list(event.translations):
        if translation.locale not in wanted:
            event.translations.remove(translation)
    for locale, values in wanted.items():
        translation = event.translation_for(locale)
        if translation is None:
            translation = EventTranslation(locale=locale)
            event.translations.append(translation)
        translation.name = values['name']
        translation.description = values['description']


def list_upcoming_events(locale, now=None):
    now = now or datetime.utcnow()
    rows = (db.session.query(Event, EventTranslation)
            .join(EventTranslation, EventTranslation.event_id == Event.id)
            .filter(EventTranslation.locale == locale, Event.date >= now)
            .order_by(Event.date.asc())
            .all())
    return [to_dto(event, translation) for event, translation in rows]


def get_event(event_id):
    return to_detail(_require_event(event_id))


def create_event(data, translations, image):
    if not translations:
        raise ValidationFailed('At least one translation is required')
    if image is None:
        raise ValidationFailed('Image file is required')
    check_image(image)
    slug = _slug_for(translations)

    with staged_image(None, upload=image, folder=FOLDER) as image_url:
        event = Event(slug=slug, date=data['date'], time=data['time'],
                      location=data['location'], image=image_url)
        _sync_translations(event, translations)
        db.session.add(event)
        db.session.commit()

    logger.info('Created event %s', event.slug)
    return to_detail(event)


def update_event(event_id, data, translations=None, image=None):
    event = _require_event(event_id)
    if image is not None:
        check_image(image)
    slug = _slug_for(translations, event.id) if translations else None

    with staged_image(event.image, upload=image, folder=FOLDER) as image_url:
        event.image = image_url
        event.date = data['date']
        event.time = data['time']
        event.location = data['location']
        if slug:
            event.slug = slug
        if translations:
            _sync_translations(event, translations)
        db.session.commit()

    logger.info('Updated event %s', event.slug)
    return to_detail(event)


def delete_event(event_id):
    event = _require_event(event_id)
    image = event.image
    db.session.delete(event)
    db.session.commit()
    discard_file(image)
    logger.info('Deleted event %s', event_id)
