"""Functions the chat model may call.

Every tool goes through the same resource services and forms as the REST
API, reports progress on the chat's DataStream and always ends with a
``finish`` event. Service errors become ``{"success": False}`` results the
model can read instead of exceptions.
"""
import logging
from collections import namedtuple
from datetime import datetime
from flask import current_app
from google.genai import types

from quranic_complex.ai.image import generate_image
from quranic_complex.ai.prompts import thumbnail_prompt
from quranic_complex.ai.speech import generate_speech
from quranic_complex.forms import (NewsForm, NewsUpdateForm, ProgramForm, ProgramUpdateForm,
                                   submitted_data, form_errors)
from quranic_complex.services import news as news_service
from quranic_complex.services import programs as program_service
from quranic_complex.services import chats as chat_service
from quranic_complex.services.errors import ServiceError, ValidationFailed, NotFound
from quranic_complex.services.storage import upload_file

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 3
NO_FIELDS_MESSAGE = 'No fields provided for update.'

TOOLS = {}


class Tool:

    def __init__(self, name, description, parameters, required, func):
        self.name = name
        self.description = description
        self.parameters = parameters
        self.required = list(required)
        self.func = func

    def declaration(self):
        properties = dict(self.parameters)
        if 'locale' in properties:
            # Locale choices come from the running app's config
            properties['locale'] = properties['locale'].model_copy(
                update={'enum': list(current_app.config['LOCALES'])})
        return types.FunctionDeclaration(
            name=self.name,
            description=self.description,
            parameters=types.Schema(
                type=types.Type.OBJECT,
                properties=properties,
                required=self.required,
            ),
        )


def tool(name, description, parameters, required=()):
    def decorator(func):
        TOOLS[name] = Tool(name, description, parameters, required, func)
        return func
    return decorator


def declarations(names=None):
    return [TOOLS[name].declaration() for name in (names or TOOLS)]


def execute_tool(ctx, name, args):
    entry = TOOLS.get(name)
    if entry is None:
        return {'success': False, 'message': f'Unknown tool "{name}"'}
    logger.info('Running tool %s for chat %s', name, ctx.chat_id)
    try:
        return entry.func(ctx, dict(args or {}))
    except ServiceError as e:
        logger.warning('Tool %s failed: %s', name, e.message)
        return {'success': False, 'message': e.message}


# Schemas

def _string(description, enum=None):
    return types.Schema(type=types.Type.STRING, description=description, enum=list(enum) if enum else None)


def _integer(description, minimum=None, maximum=None):
    return types.Schema(type=types.Type.INTEGER, description=description, minimum=minimum, maximum=maximum)


def _boolean(description):
    return types.Schema(type=types.Type.BOOLEAN, description=description)


def _locale_schema(description='Locale of the content. Defaults to "en".'):
    return _string(description)


SEO_PARAMETERS = {
    'metaTitle': _string('SEO title'),
    'metaDescription': _string('SEO description'),
    'keywords': _string('Comma separated SEO keywords'),
}


# Shared helpers

ContentKind = namedtuple('ContentKind', [
    'name', 'form', 'update_form', 'fields', 'summary_field',
    'create', 'update_by_slug', 'create_translation', 'get_by_slug', 'search',
])

NEWS_FIELDS = {
    'slug': 'slug', 'title': 'title', 'content': 'content', 'excerpt': 'excerpt',
    'metaTitle': 'meta_title', 'metaDescription': 'meta_description', 'keywords': 'keywords',
}
PROGRAM_FIELDS = {
    'slug': 'slug', 'title': 'title', 'description': 'description', 'ageGroup': 'age_group',
    'schedule': 'schedule', 'metaTitle': 'meta_title', 'metaDescription': 'meta_description',
    'keywords': 'keywords',
}

NEWS = ContentKind('news', NewsForm, NewsUpdateForm, NEWS_FIELDS, 'excerpt',
                   news_service.create_news, news_service.update_news_by_slug,
                   news_service.create_news_translation, news_service.get_news,
                   news_service.search_news)
PROGRAM = ContentKind('program', ProgramForm, ProgramUpdateForm, PROGRAM_FIELDS, 'description',
                      program_service.create_program, program_service.update_program_by_slug,
                      program_service.create_program_translation, program_service.get_program,
                      program_service.search_programs)


def _locale(args, required=False):
    locale = args.get('locale')
    if not locale:
        if required:
            raise ValidationFailed('locale is required')
        return current_app.config.get('DEFAULT_LOCALE', 'en')
    if locale not in current_app.config['LOCALES']:
        raise ValidationFailed(f'Unsupported locale "{locale}"')
    return locale


def _pick(args, fields, skip=()):
    return {attr: args[key] for key, attr in fields.items()
            if key not in skip and args.get(key) is not None}


def _validated(form_class, data):
    form = form_class(formdata=None, data=data)
    if not form.validate():
        errors = form_errors(form)
        details = '; '.join(f'{name}: {messages[0]}' for name, messages in errors.items())
        raise ValidationFailed(f'Invalid data: {details}', errors=errors)
    return submitted_data(form, exclude=('remove_image',))


def _thumbnail(stream, title, context, slug):
    stream.write('thumbnail_generation', 'Generating thumbnail image...')
    try:
        generated = generate_image(thumbnail_prompt(title, context))
    except ServiceError as e:
        stream.write('thumbnail_generation_status', f'Failed to generate thumbnail: {e.message}')
        return None
    stream.write('thumbnail_generation_status', 'Thumbnail generated successfully!')
    return generated.as_upload(f'{slug}-thumbnail')


def _create_item(ctx, args, kind):
    stream = ctx.stream
    try:
        locale = _locale(args)
        data = _pick(args, kind.fields)
        if kind is NEWS:
            data['date'] = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
        data = _validated(kind.form, data)

        image = None
        if args.get('generateThumbnail'):
            image = _thumbnail(stream, data['title'], data.get(kind.summary_field), data['slug'])

        stream.write(f'creating_{kind.name}_item', f'Preparing to create a {kind.name} item...')
        stream.write(f'{kind.name}_param', data['slug'], name='slug')
        stream.write(f'{kind.name}_param', data['title'], name='title')
        stream.write(f'{kind.name}_param', locale, name='locale')
        if 'date' in data:
            stream.write(f'{kind.name}_param', data['date'].date().isoformat(), name='date')
        for key, attr in kind.fields.items():
            if key not in ('slug', 'title', 'content', 'description') and data.get(attr):
                stream.write(f'{kind.name}_param', data[attr], name=key)

        item = kind.create(data, locale, image)
        if item['image']:
            stream.write('thumbnail_path', item['image'])
        stream.write(f'{kind.name}_creation_status', 'Success!')
        stream.write(f'{kind.name}_created', {
            'id': item['id'], 'slug': item['slug'], 'title': item['title'],
            'locale': locale, 'thumbnailPath': item['image'],
        })
        return {
            'success': True,
            'message': f'{kind.name.capitalize()} item created successfully.',
            f'{kind.name}Item': item,
        }
    except ServiceError as e:
        stream.write(f'{kind.name}_creation_status', f'Failed: {e.message}')
        return {'success': False, 'message': f'Failed to create {kind.name} item: {e.message}'}
    finally:
        stream.write('finish')


def _update_item(ctx, args, kind, allow_image_removal=False):
    stream = ctx.stream
    slug = args.get('slug')
    stream.write(f'updating_{kind.name}_item', f'Updating {kind.name} item "{slug}"...')
    try:
        if not slug:
            raise ValidationFailed('slug is required')
        locale = _locale(args)
        data = _pick(args, kind.fields, skip=('slug',))
        remove_image = allow_image_removal and bool(args.get('removeImage'))
        if not data and not remove_image:
            stream.write(f'{kind.name}_update_status', f'Failed: {NO_FIELDS_MESSAGE}')
            return {'success': False, 'message': NO_FIELDS_MESSAGE}

        data = _validated(kind.update_form, data)
        for key in data:
            stream.write(f'{kind.name}_param', data[key], name=key)
        item = kind.update_by_slug(slug, locale, data, remove_image=remove_image)
        stream.write(f'{kind.name}_update_status', 'Success!')
        stream.write(f'{kind.name}_updated', {'id': item['id'], 'slug': item['slug'], 'locale': locale})
        return {
            'success': True,
            'message': f'{kind.name.capitalize()} item updated successfully.',
            f'{kind.name}Item': item,
        }
    except ServiceError as e:
        stream.write(f'{kind.name}_update_status', f'Failed: {e.message}')
        return {'success': False, 'message': f'Failed to update {kind.name} item: {e.message}'}
    finally:
        stream.write('finish')


def _create_translation(ctx, args, kind):
    stream = ctx.stream
    stream.write(f'creating_{kind.name}_translation',
                 f'Adding a {args.get("locale")} translation to "{args.get("slug")}"...')
    try:
        locale = _locale(args, required=True)
        data = _validated(kind.form, _pick(args, kind.fields))
        slug = data.pop('slug')
        item = kind.create_translation(slug, locale, data)
        stream.write(f'{kind.name}_translation_status', 'Success!')
        return {
            'success': True,
            'message': f'{kind.name.capitalize()} translation created successfully.',
            f'{kind.name}Item': item,
        }
    except ServiceError as e:
        stream.write(f'{kind.name}_translation_status', f'Failed: {e.message}')
        return {'success': False, 'message': f'Failed to create {kind.name} translation: {e.message}'}
    finally:
        stream.write('finish')


def _get_by_slug(ctx, args, kind):
    stream = ctx.stream
    stream.write(f'fetching_{kind.name}_by_slug', f'Looking up "{args.get("slug")}"...')
    try:
        if not args.get('slug'):
            raise ValidationFailed('slug is required')
        item = kind.get_by_slug(args['slug'], _locale(args))
        stream.write(f'{kind.name}_fetch_status', 'Success!')
        return {'success': True, f'{kind.name}Item': item}
    except ServiceError as e:
        stream.write(f'{kind.name}_fetch_status', f'Failed: {e.message}')
        return {'success': False, 'message': e.message}
    finally:
        stream.write('finish')


def _search(ctx, args, kind):
    stream = ctx.stream
    query = (args.get('titleQuery') or '').strip()
    stream.write(f'searching_{kind.name}_by_title', f'Searching for "{query}"...')
    try:
        if len(query) < MIN_QUERY_LENGTH:
            raise ValidationFailed(f'titleQuery must be at least {MIN_QUERY_LENGTH} characters')
        locale = _locale(args) if args.get('locale') else None
        items = kind.search(query, locale)
        if not items:
            where = f' in locale "{locale}"' if locale else ''
            message = f'No {kind.name} items found matching "{query}"{where}.'
            stream.write(f'{kind.name}_search_status', message)
            return {'success': True, 'message': message, 'items': []}
        for item in items:
            stream.write(f'{kind.name}_search_result_item', {'slug': item['slug'], 'title': item['title'],
                                                            'locale': item['locale']})
        message = f'Successfully found {len(items)} {kind.name} item(s) matching "{query}".'
        stream.write(f'{kind.name}_search_status', message)
        return {'success': True, 'message': message, 'items': items}
    except ServiceError as e:
        stream.write(f'{kind.name}_search_status', f'Failed: {e.message}')
        return {'success': False, 'message': f'Failed to search for {kind.name} items: {e.message}'}
    finally:
        stream.write('finish')


# News tools

@tool('createNews', 'Create a news item with its first translation. The date is set to today.', {
    'slug': _string('URL slug, lower case words joined by hyphens'),
    'title': _string('Title of the news item'),
    'content': _string('Full body of the news item'),
    'excerpt': _string('Short summary shown in lists'),
    'locale': _locale_schema(),
    **SEO_PARAMETERS,
    'generateThumbnail': _boolean('Generate a thumbnail image with AI. Defaults to false.'),
}, required=('slug', 'title', 'content', 'excerpt'))
def create_news(ctx, args):
    return _create_item(ctx, args, NEWS)


@tool('updateNews', 'Update the existing translation of a news item identified by slug and locale.', {
    'slug': _string('Slug of the news item'),
    'locale': _locale_schema('Locale of the translation to update. Defaults to "en".'),
    'title': _string('New title'),
    'content': _string('New body'),
    'excerpt': _string('New summary'),
    **SEO_PARAMETERS,
}, required=('slug',))
def update_news(ctx, args):
    return _update_item(ctx, args, NEWS)


@tool('createNewsTranslation', 'Add a translation in a new locale to an existing news item.', {
    'slug': _string('Slug of the news item'),
    'locale': _locale_schema('Locale of the new translation'),
    'title': _string('Translated title'),
    'content': _string('Translated body'),
    'excerpt': _string('Translated summary'),
    **SEO_PARAMETERS,
}, required=('slug', 'locale', 'title', 'content', 'excerpt'))
def create_news_translation(ctx, args):
    return _create_translation(ctx, args, NEWS)


@tool('getLatestNews', 'Fetch the most recent news items.', {
    'limit': _integer('How many items to return (1-20). Defaults to 5.', minimum=1, maximum=news_service.MAX_LATEST),
    'locale': _locale_schema('Locale of the returned items. Defaults to "en".'),
})
def get_latest_news(ctx, args):
    stream = ctx.stream
    stream.write('fetching_news', 'Fetching the latest news...')
    try:
        limit = args.get('limit') or 5
        if not 1 <= int(limit) <= news_service.MAX_LATEST:
            raise ValidationFailed(f'limit must be between 1 and {news_service.MAX_LATEST}')
        items = news_service.latest_news(limit, _locale(args))
        for item in items:
            stream.write('news_item', {'slug': item['slug'], 'title': item['title'],
                                       'date': item['date'], 'locale': item['locale']})
        message = f'Successfully fetched {len(items)} news items.'
        stream.write('news_fetch_status', message)
        return {'success': True, 'message': message, 'items': items}
    except ServiceError as e:
        stream.write('news_fetch_status', f'Failed: {e.message}')
        return {'success': False, 'message': f'Failed to fetch news items: {e.message}'}
    finally:
        stream.write('finish')


@tool('getNewsBySlug', 'Fetch one news item with its full content.', {
    'slug': _string('Slug of the news item'),
    'locale': _locale_schema(),
}, required=('slug',))
def get_news_by_slug(ctx, args):
    return _get_by_slug(ctx, args, NEWS)


@tool('searchNewsByTitle', 'Search news items whose title contains the query (case insensitive).', {
    'titleQuery': _string('Text to look for, at least 3 characters'),
    'locale': _locale_schema('Only search translations in this locale'),
}, required=('titleQuery',))
def search_news_by_title(ctx, args):
    return _search(ctx, args, NEWS)


# Program tools

@tool('createProgram', 'Create an educational program with its first translation.', {
    'slug': _string('URL slug, lower case words joined by hyphens'),
    'title': _string('Program title'),
    'description': _string('Program description'),
    'ageGroup': _string('Target age group, e.g. "7-12 years"'),
    'schedule': _string('When the program runs, e.g. "Saturdays 10:00"'),
    'locale': _locale_schema(),
    **SEO_PARAMETERS,
    'generateThumbnail': _boolean('Generate a thumbnail image with AI. Defaults to false.'),
}, required=('slug', 'title', 'description', 'ageGroup', 'schedule'))
def create_program(ctx, args):
    return _create_item(ctx, args, PROGRAM)


@tool('updateProgram', 'Update a program; the translation for the locale is created if missing.', {
    'slug': _string('Slug of the program'),
    'locale': _locale_schema('Locale of the translation to update. Defaults to "en".'),
    'title': _string('New title'),
    'description': _string('New description'),
    'ageGroup': _string('New age group'),
    'schedule': _string('New schedule'),
    **SEO_PARAMETERS,
    'removeImage': _boolean('Remove the current image'),
}, required=('slug',))
def update_program(ctx, args):
    return _update_item(ctx, args, PROGRAM, allow_image_removal=True)


@tool('createProgramTranslation', 'Add a translation in a new locale to an existing program.', {
    'slug': _string('Slug of the program'),
    'locale': _locale_schema('Locale of the new translation'),
    'title': _string('Translated title'),
    'description': _string('Translated description'),
    'ageGroup': _string('Translated age group'),
    'schedule': _string('Translated schedule'),
    **SEO_PARAMETERS,
}, required=('slug', 'locale', 'title', 'description', 'ageGroup', 'schedule'))
def create_program_translation(ctx, args):
    return _create_translation(ctx, args, PROGRAM)


@tool('getProgramBySlug', 'Fetch one program.', {
    'slug': _string('Slug of the program'),
    'locale': _locale_schema(),
}, required=('slug',))
def get_program_by_slug(ctx, args):
    return _get_by_slug(ctx, args, PROGRAM)


@tool('searchProgramByTitle', 'Search programs whose title contains the query (case insensitive).', {
    'titleQuery': _string('Text to look for, at least 3 characters'),
    'locale': _locale_schema('Only search translations in this locale'),
}, required=('titleQuery',))
def search_program_by_title(ctx, args):
    return _search(ctx, args, PROGRAM)


# Media and documents

@tool('generateImage', 'Generate an image from a text prompt and store it.', {
    'prompt': _string('Description of the image'),
}, required=('prompt',))
def generate_image_tool(ctx, args):
    stream = ctx.stream
    stream.write('image_generation_status', 'Generating image...')
    try:
        generated = generate_image(args.get('prompt') or '')
        url = upload_file(generated.data, 'generated.png', 'generated', generated.mime_type)
        stream.write('image_generation_status', 'Image generated successfully!')
        stream.write('image_generated', url)
        return {'success': True, 'message': 'Image generated successfully.', 'imageUrl': url,
                'text': generated.text}
    except ServiceError as e:
        stream.write('image_generation_error', e.message)
        return {'success': False, 'message': f'Failed to generate image: {e.message}'}
    finally:
        stream.write('finish')


@tool('getDocument', 'Read the latest saved version of a document.', {
    'id': _string('Document id'),
}, required=('id',))
def get_document(ctx, args):
    stream = ctx.stream
    stream.write('fetching_document', f'Reading document "{args.get("id")}"...')
    try:
        document = chat_service.get_document(args.get('id') or '')
        if document is None or document.user_id != ctx.user.id:
            raise NotFound('Document not found')
        stream.write('document_fetch_status', 'Success!')
        return {'success': True, 'document': document.to_dict()}
    except ServiceError as e:
        stream.write('document_fetch_status', f'Failed: {e.message}')
        return {'success': False, 'message': e.message}
    finally:
        stream.write('finish')


@tool('generateSpeech', 'Convert a short text into spoken audio and return the URL of the audio file.', {
    'text': _string('Text to read aloud, in any language'),
    'voice': _string('Gemini voice name, e.g. "Kore", "Puck" or "Zephyr". Defaults to "Kore".'),
}, required=('text',))
def generate_speech_tool(ctx, args):
    stream = ctx.stream
    text = (args.get('text') or '').strip()
    preview = text[:50] + ('...' if len(text) > 50 else '')
    stream.write('speech_status', f'Starting speech generation for text: "{preview}"')
    try:
        speech = generate_speech(text, args.get('voice'))
        stream.write('speech_status', 'Audio data received. Saving file...')
        url = upload_file(speech.data, 'speech.wav', 'speech', speech.mime_type)
        stream.write('speech_generated', {'audioUrl': url})
        return {'success': True, 'message': 'Speech audio generated and saved.', 'audioUrl': url}
    except ServiceError as e:
        stream.write('speech_generation_error', e.message)
        return {'success': False, 'message': f'Failed to generate speech: {e.message}'}
    finally:
        stream.write('finish')
