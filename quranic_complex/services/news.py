import logging
from datetime import datetime
from flask import current_app
from quranic_complex import db
from quranic_complex.models import News, NewsTranslation, isoformat
from quranic_complex.services.errors import Conflict, NotFound
from quranic_complex.services.storage import staged_image, discard_file

logger = logging.getLogger(__name__)

FOLDER = 'news'
LATEST_LIMIT = 10
MAX_LATEST = 20

TRANSLATION_FIELDS = ('title', 'content', 'excerpt', 'meta_title', 'meta_description', 'keywords')
OPTIONAL_FIELDS = ('meta_title', 'meta_description', 'keywords')


def to_summary(news, translation):
    return {
        'id': news.id,
        'slug': news.slug,
        'title': translation.title if translation else None,
        'excerpt': translation.excerpt if translation else None,
        'image': news.image,
        'date': isoformat(news.date),
        'metaTitle': translation.meta_title if translation else None,
        'metaDescription': translation.meta_description if translation else None,
    }


def to_dto(news, translation):
    dto = to_summary(news, translation)
    dto.update({
        'content': translation.content if translation else None,
        'keywords': translation.keywords if translation else None,
        'locale': translation.locale if translation else None,
        'createdAt': isoformat(news.created_at),
        'updatedAt': isoformat(news.updated_at),
    })
    return dto


def _clean(data):
    return {k: (None if k in OPTIONAL_FIELDS and v == '' else v) for k, v in data.items()}


def _require_news(news_id):
    news = db.session.get(News, news_id)
    if news is None:
        raise NotFound('News item not found')
    return news


def _check_slug_free(slug, news_id=None):
    existing = News.query.filter_by(slug=slug).first()
    if existing and existing.id != news_id:
        raise Conflict(f'Slug "{slug}" already exists.')


def _translated(locale=None):
    q = (db.session.query(News, NewsTranslation)
         .join(NewsTranslation, NewsTranslation.news_id == News.id))
    if locale:
        q = q.filter(NewsTranslation.locale == locale)
    return q


def list_news(locale, limit=LATEST_LIMIT):
    rows = _translated(locale).order_by(News.date.desc()).limit(limit).all()
    return [to_summary(news, translation) for news, translation in rows]


def latest_news(limit=5, locale=None):
    """Newest news items, one entry per item.

    Without a locale each item comes with its default-locale translation,
    or its first one when that is missing.
    """
    limit = max(1, min(int(limit), MAX_LATEST))
    if locale:
        rows = _translated(locale).order_by(News.date.desc()).limit(limit).all()
        return [to_dto(news, translation) for news, translation in rows]

    default_locale = current_app.config['DEFAULT_LOCALE']
    items = (News.query.filter(News.translations.any())
             .order_by(News.date.desc()).limit(limit).all())
    return [to_dto(news, news.translation_for(default_locale) or news.translations[0]) for news in items]


def get_news(slug, locale):
    news = News.query.filter_by(slug=slug).first()
    translation = news.translation_for(locale) if news else None
    if translation is None:
        raise NotFound('News item not found or no translation available for the specified locale')
    return to_dto(news, translation)


def get_news_by_id(news_id, locale):
    news = _require_news(news_id)
    return to_dto(news, news.translation_for(locale))


def search_news(query, locale=None, limit=10):
    rows = (_translated(locale)
            .filter(NewsTranslation.title.ilike(f'%{query}%'))
            .order_by(News.date.desc())
            .limit(limit)
            .all())
    return [to_dto(news, translation) for news, translation in rows]


def create_news(data, locale, image=None):
    data = _clean(data)
    _check_slug_free(data['slug'])

    with staged_image(None, upload=image, folder=FOLDER) as image_url:
        news = News(slug=data['slug'], image=image_url, date=data.get('date') or datetime.utcnow())
        translation = NewsTranslation(locale=locale, **{f: data.get(f) for f in TRANSLATION_FIELDS})
        news.translations.append(translation)
        db.session.add(news)
        db.session.commit()

    logger.info('Created news %s (%s)', news.slug, locale)
    return to_dto(news, translation)


def update_news(news_id, data, locale, image=None, remove_image=False):
    """Partially update a news item and upsert its translation for locale."""
    news = _require_news(news_id)
    return _apply_update(news, _clean(data), locale, image, remove_image)


def update_news_by_slug(slug, locale, data, image=None, remove_image=False):
    """Update an existing translation; unlike update_news it never creates one."""
    news = News.query.filter_by(slug=slug).first()
    if news is None or news.translation_for(locale) is None:
        raise NotFound(f'News item with slug "{slug}" and locale "{locale}" not found.')
    return _apply_update(news, _clean(data), locale, image, remove_image)


def _apply_update(news, data, locale, image, remove_image):
    translation = news.translation_for(locale)

    base_changes = {}
    new_slug = data.get('slug') or None
    if new_slug is not None and new_slug != news.slug:
        _check_slug_free(new_slug, news.id)
        base_changes['slug'] = new_slug
    if data.get('date') is not None and data['date'] != news.date:
        base_changes['date'] = data['date']

    text_changes = {}
    for field in TRANSLATION_FIELDS:
        if field not in data:
            continue
        if translation is None or getattr(translation, field) != data[field]:
            text_changes[field] = data[field]

    image_change = image is not None or (remove_image and news.image is not None)
    if not base_changes and not text_changes and not image_change:
        logger.info('No changes for news %s', news.slug)
        return to_dto(news, translation)

    with staged_image(news.image, upload=image, remove=remove_image, folder=FOLDER) as image_url:
        news.image = image_url
        for key, value in base_changes.items():
            setattr(news, key, value)
        if text_changes:
            if translation is None:
                translation = NewsTranslation(locale=locale, title='', content='', excerpt='')
                news.translations.append(translation)
            for field, value in text_changes.items():
                setattr(translation, field, value)
        db.session.commit()

    logger.info('Updated news %s (%s)', news.slug, locale)
    return to_dto(news, translation)


def create_news_translation(slug, locale, data):
    news = News.query.filter_by(slug=slug).first()
    if news is None:
        raise NotFound(f'News item with slug "{slug}" not found.')
    if news.translation_for(locale) is not None:
        raise Conflict(f'Translation for locale "{locale}" already exists for this news item.')

    data = _clean(data)
    translation = NewsTranslation(locale=locale, **{f: data.get(f) for f in TRANSLATION_FIELDS})
    news.translations.append(translation)
    db.session.commit()
    return to_dto(news, translation)


def delete_news(news_id):
    news = _require_news(news_id)
    image = news.image
    db.session.delete(news)
    db.session.commit()
    discard_file(image)
    logger.info('Deleted news %s', news_id)
