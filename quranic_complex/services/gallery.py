import logging
from quranic_complex import db
from quranic_complex.models import Gallery, GalleryTranslation, isoformat
from quranic_complex.services.errors import NotFound, ValidationFailed
from quranic_complex.services.storage import staged_image, discard_file, check_image

logger = logging.getLogger(__name__)

FOLDER = 'gallery'


def to_dto(item, translation):
    return {
        'id': item.id,
        'image': item.image,
        'category': item.category,
        'title': translation.title if translation else None,
        'description': translation.description if translation else None,
    }


def to_detail(item):
    return {
        'id': item.id,
        'image': item.image,
        'category': item.category,
        'createdAt': isoformat(item.created_at),
        'translations': [
            {'locale': t.locale, 'title': t.title, 'description': t.description}
            for t in sorted(item.translations, key=lambda t: t.locale)
        ],
    }


def _require_item(item_id):
    item = db.session.get(Gallery, item_id)
    if item is None:
        raise NotFound('Gallery item not found')
    return item


def _sync_translations(item, translations):
    """Make item's translations exactly the given list, keyed by locale."""
    wanted = {t['locale']: t for t in translations}
    for translation in list(item.translations):
        if translation.locale not in wanted:
            item.translations.remove(translation)
    for locale, values in wanted.items():
        translation = item.translation_for(locale)
        if translation is None:
            translation = GalleryTranslation(locale=locale)
            item.translations.append(translation)
        translation.title = values['title']
        translation.description = values.get('description')


def list_gallery(locale):
    rows = (db.session.query(Gallery, GalleryTranslation)
            .join(GalleryTranslation, GalleryTranslation.gallery_id == Gallery.id)
            .filter(GalleryTranslation.locale == locale)
            .order_by(Gallery.created_at.desc())
            .all())
    return [to_dto(item, translation) for item, translation in rows]


def get_gallery_item(item_id):
    return to_detail(_require_item(item_id))


def create_gallery_item(category, translations, image):
    if image is None:
        raise ValidationFailed('Image file is required')
    check_image(image)

    with staged_image(None, upload=image, folder=FOLDER) as image_url:
        item = Gallery(category=category or '', image=image_url)
        _sync_translations(item, translations or [])
        db.session.add(item)
        db.session.commit()

    logger.info('Created gallery item %s', item.id)
    return to_detail(item)


def update_gallery_item(item_id, category=None, translations=None, image=None, clear_image=False):
    """Update category and image and replace the translation set in one commit."""
    item = _require_item(item_id)
    if image is not None:
        check_image(image)

    with staged_image(item.image, upload=image, remove=clear_image, folder=FOLDER) as image_url:
        item.image = image_url
        if category is not None:
            item.category = category
        if translations is not None:
            _sync_translations(item, translations)
        db.session.commit()

    logger.info('Updated gallery item %s', item.id)
    return to_detail(item)


def delete_gallery_item(item_id):
    item = _require_item(item_id)
    image = item.image
    db.session.delete(item)
    db.session.commit()
    discard_file(image)
    logger.info('Deleted gallery item %s', item_id)


def list_categories():
    rows = db.session.query(Gallery.category).distinct().order_by(Gallery.category).all()
    return [category for (category,) in rows if category]


def create_category(name):
    # Categories only exist through the items that use them.
    name = (name or '').strip()
    if not name:
        raise ValidationFailed('Category name is required')
    return {'name': name}


def delete_category(name, replacement=None):
    count = (Gallery.query.filter_by(category=name)
             .update({Gallery.category: replacement or ''}, synchronize_session=False))
    db.session.commit()
    logger.info('Moved %d gallery items from category %r to %r', count, name, replacement or '')
    return count
