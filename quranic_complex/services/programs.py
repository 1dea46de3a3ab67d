import logging
from quranic_complex import db
from quranic_complex.models import Program, ProgramTranslation
from quranic_complex.services.errors import Conflict, NotFound
from quranic_complex.services.storage import staged_image, discard_file

logger = logging.getLogger(__name__)

FOLDER = 'programs'

# attribute name -> translation column
TRANSLATION_FIELDS = {
    'title': 'title',
    'description': 'description',
    'age_group': 'age_group',
    'schedule': 'schedule',
    'meta_title': 'meta_title',
    'meta_description': 'meta_description',
    'keywords': 'keywords',
}
OPTIONAL_FIELDS = ('meta_title', 'meta_description', 'keywords')


def to_dto(program, translation):
    return {
        'id': program.id,
        'slug': program.slug,
        'title': translation.title if translation else None,
        'description': translation.description if translation else None,
        'ageGroup': translation.age_group if translation else None,
        'schedule': translation.schedule if translation else None,
        'image': program.image,
        'metaTitle': translation.meta_title if translation else None,
        'metaDescription': translation.meta_description if translation else None,
        'keywords': translation.keywords if translation else None,
        'locale': translation.locale if translation else None,
    }


def _clean(data):
    cleaned = {}
    for key, value in data.items():
        if key in OPTIONAL_FIELDS and value == '':
            value = None
        cleaned[key] = value
    return cleaned


def _require_program(program_id):
    program = db.session.get(Program, program_id)
    if program is None:
        raise NotFound('Program not found')
    return program


def _check_slug_free(slug, program_id=None):
    existing = Program.query.filter_by(slug=slug).first()
    if existing and existing.id != program_id:
        raise Conflict(f'A program with slug "{slug}" already exists.')


def list_programs(locale):
    rows = (db.session.query(Program, ProgramTranslation)
            .join(ProgramTranslation, ProgramTranslation.program_id == Program.id)
            .filter(ProgramTranslation.locale == locale)
            .order_by(Program.created_at.asc())
            .all())
    return [to_dto(program, translation) for program, translation in rows]


def get_program(slug, locale):
    program = Program.query.filter_by(slug=slug).first()
    translation = program.translation_for(locale) if program else None
    if translation is None:
        raise NotFound('Program not found')
    return to_dto(program, translation)


def get_program_by_id(program_id, locale):
    program = _require_program(program_id)
    return to_dto(program, program.translation_for(locale))


def create_program(data, locale, image=None):
    """Create a program with its first translation.

    data holds slug, title, description, age_group, schedule and the
    optional meta fields.
    """
    data = _clean(data)
    _check_slug_free(data['slug'])

    with staged_image(None, upload=image, folder=FOLDER) as image_url:
        program = Program(slug=data['slug'], image=image_url)
        translation = ProgramTranslation(
            locale=locale,
            **{column: data.get(key) for key, column in TRANSLATION_FIELDS.items()}
        )
        program.translations.append(translation)
        db.session.add(program)
        db.session.commit()

    logger.info('Created program %s (%s)', program.slug, locale)
    return to_dto(program, translation)


def update_program(program_id, data, locale, image=None, remove_image=False):
    """Partially update a program and upsert its translation for locale.

    Values equal to the stored ones do not count as changes; with nothing
    to change the current state is returned untouched.
    """
    program = _require_program(program_id)
    return _apply_update(program, _clean(data), locale, image, remove_image)


def update_program_by_slug(slug, locale, data, image=None, remove_image=False):
    program = Program.query.filter_by(slug=slug).first()
    if program is None:
        raise NotFound(f'Program with slug "{slug}" not found.')
    return _apply_update(program, _clean(data), locale, image, remove_image)


def _apply_update(program, data, locale, image, remove_image):
    translation = program.translation_for(locale)

    new_slug = data.get('slug') or None
    slug_changed = new_slug is not None and new_slug != program.slug
    if slug_changed:
        _check_slug_free(new_slug, program.id)

    text_changes = {}
    for key, column in TRANSLATION_FIELDS.items():
        if key not in data:
            continue
        if translation is None or getattr(translation, column) != data[key]:
            text_changes[column] = data[key]

    image_change = image is not None or (remove_image and program.image is not None)
    if not slug_changed and not text_changes and not image_change:
        logger.info('No changes for program %s', program.slug)
        return to_dto(program, translation)

    with staged_image(program.image, upload=image, remove=remove_image, folder=FOLDER) as image_url:
        program.image = image_url
        if slug_changed:
            program.slug = new_slug
        if text_changes:
            if translation is None:
                translation = ProgramTranslation(locale=locale, title='', description='', age_group='', schedule='')
                program.translations.append(translation)
            for column, value in text_changes.items():
                setattr(translation, column, value)
        db.session.commit()

    logger.info('Updated program %s (%s)', program.slug, locale)
    return to_dto(program, translation)


def create_program_translation(slug, locale, data):
    program = Program.query.filter_by(slug=slug).first()
    if program is None:
        raise NotFound(f'Program with slug "{slug}" not found.')
    if program.translation_for(locale) is not None:
        raise Conflict(f'Translation for locale "{locale}" already exists for this program.')

    data = _clean(data)
    translation = ProgramTranslation(
        locale=locale,
        **{column: data.get(key) for key, column in TRANSLATION_FIELDS.items()}
    )
    program.translations.append(translation)
    db.session.commit()
    return to_dto(program, translation)


def search_programs(query, locale=None, limit=10):
    q = (db.session.query(Program, ProgramTranslation)
         .join(ProgramTranslation, ProgramTranslation.program_id == Program.id)
         .filter(ProgramTranslation.title.ilike(f'%{query}%')))
    if locale:
        q = q.filter(ProgramTranslation.locale == locale)
    rows = q.order_by(Program.created_at.desc()).limit(limit).all()
    return [to_dto(program, translation) for program, translation in rows]


def delete_program(program_id):
    program = _require_program(program_id)
    image = program.image
    db.session.delete(program)
    db.session.commit()
    discard_file(image)
    logger.info('Deleted program %s', program_id)
