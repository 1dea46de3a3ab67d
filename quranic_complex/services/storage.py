import os
import uuid
import logging
import mimetypes
from contextlib import contextmanager
from urllib.parse import unquote
from flask import current_app
from werkzeug.utils import secure_filename
from quranic_complex.firebase_init import get_bucket
from quranic_complex.services.errors import ValidationFailed, StorageFailure

logger = logging.getLogger(__name__)

LOCAL_URL_PREFIX = '/uploads/'
BUCKET_URL_PREFIX = 'https://storage.googleapis.com/'
TYPE_LABELS = {'image/jpeg': 'JPEG', 'image/png': 'PNG', 'image/webp': 'WebP', 'application/pdf': 'PDF'}


def _use_bucket():
    return bool(current_app.config.get('FIREBASE_STORAGE_BUCKET'))


def _upload_root():
    return os.path.abspath(current_app.config['UPLOAD_FOLDER'])


def file_size(file):
    file.seek(0, 2)
    size = file.tell()
    file.seek(0)
    return size


def has_file(file):
    """True for an uploaded file with a name and at least one byte."""
    return file is not None and bool(file.filename) and file_size(file) > 0


def check_image(file, allowed_types=None):
    """Reject missing, empty, oversized or disallowed image uploads."""
    if file is None or not file.filename:
        raise ValidationFailed('Image file is required')

    allowed_types = allowed_types or current_app.config['ALLOWED_IMAGE_TYPES']
    if file.mimetype not in allowed_types:
        names = ', '.join(TYPE_LABELS.get(t, t) for t in allowed_types)
        raise ValidationFailed(f'Invalid image file type. Allowed types: {names}')

    size = file_size(file)
    if size == 0:
        raise ValidationFailed('Image file is empty')
    max_size = current_app.config['MAX_IMAGE_SIZE']
    if size > max_size:
        raise ValidationFailed(f'Image must be less than {max_size // (1024 * 1024)}MB')


def _unique_name(filename, content_type=None):
    ext = os.path.splitext(secure_filename(filename or ''))[1].lower()
    if not ext and content_type:
        ext = mimetypes.guess_extension(content_type) or ''
    return f'{uuid.uuid4().hex}{ext}'


def upload_file(file_data, filename, folder='', content_type=None):
    """Store bytes or a file-like object and return its public URL.

    Args:
        file_data: bytes or file-like object
        filename: original file name, used for the extension only
        folder: sub folder, e.g. 'news' or 'avatars'
        content_type: MIME type

    Returns:
        URL the stored file is served from
    """
    if not isinstance(file_data, bytes):
        file_data.seek(0)
        file_data = file_data.read()

    name = _unique_name(filename, content_type)
    path = f'{folder}/{name}' if folder else name

    if _use_bucket():
        try:
            bucket = get_bucket()
            blob = bucket.blob(path)
            blob.upload_from_string(file_data, content_type=content_type)
            blob.make_public()
        except Exception as e:
            logger.exception('Upload of %s to bucket failed', path)
            raise StorageFailure('Failed to upload file') from e
        logger.info('Uploaded %s to bucket', path)
        return blob.public_url

    destination = os.path.join(_upload_root(), folder, name)
    try:
        os.makedirs(os.path.dirname(destination), exist_ok=True)
        with open(destination, 'wb') as fh:
            fh.write(file_data)
    except OSError as e:
        logger.exception('Writing upload %s failed', destination)
        raise StorageFailure('Failed to upload file') from e
    logger.info('Stored upload %s', path)
    return LOCAL_URL_PREFIX + path


def upload_image(file, folder=''):
    return upload_file(file, file.filename, folder, file.mimetype)


def delete_file(url):
    """Delete a file previously stored by upload_file.

    URLs this app did not store (placeholders, external links) are left
    alone. Returns True when something was deleted.
    """
    if not url:
        return False

    if url.startswith(LOCAL_URL_PREFIX):
        root = _upload_root()
        path = os.path.normpath(os.path.join(root, url[len(LOCAL_URL_PREFIX):]))
        if not path.startswith(root + os.sep) or not os.path.exists(path):
            return False
        try:
            os.remove(path)
        except OSError as e:
            raise StorageFailure('Failed to delete file') from e
        logger.info('Deleted upload %s', path)
        return True

    if _use_bucket():
        bucket = get_bucket()
        prefix = f'{BUCKET_URL_PREFIX}{bucket.name}/'
        if url.startswith(prefix):
            try:
                blob = bucket.blob(unquote(url[len(prefix):]))
                if not blob.exists():
                    return False
                blob.delete()
            except Exception as e:
                logger.exception('Deleting %s from bucket failed', url)
                raise StorageFailure('Failed to delete file') from e
            logger.info('Deleted %s from bucket', url)
            return True

    logger.debug('Skipping delete of unmanaged file %s', url)
    return False


def discard_file(url):
    """Delete a file that is no longer referenced; failures only get logged."""
    try:
        return delete_file(url)
    except StorageFailure:
        logger.warning('Could not remove orphaned file %s', url)
        return False


@contextmanager
def staged_image(current, upload=None, remove=False, folder='', allowed_types=None):
    """Stage an image change around a database write.

    Yields the URL the row should hold. The new upload is deleted again if
    the body raises; the previous image is removed only once the body
    completed.
    """
    new_url = current
    uploaded = None
    if upload is not None:
        check_image(upload, allowed_types)
        uploaded = new_url = upload_image(upload, folder)
    elif remove:
        new_url = None

    try:
        yield new_url
    except Exception:
        if uploaded:
            discard_file(uploaded)
        raise

    if current and current != new_url:
        discard_file(current)
