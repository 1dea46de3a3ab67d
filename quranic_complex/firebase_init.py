"""Firebase Admin app, used only for the Cloud Storage upload bucket."""
import os
import logging
import firebase_admin
from firebase_admin import credentials, storage
from flask import current_app

logger = logging.getLogger(__name__)

_bucket = None


def _credentials():
    path = os.environ.get('GOOGLE_APPLICATION_CREDENTIALS')
    if path and os.path.exists(path):
        return credentials.Certificate(path)
    return credentials.ApplicationDefault()


def init_firebase(bucket_name):
    """Initialise the default Firebase app once and return the upload bucket."""
    global _bucket
    if _bucket is not None and _bucket.name == bucket_name:
        return _bucket

    try:
        firebase_admin.get_app()
    except ValueError:
        firebase_admin.initialize_app(_credentials(), {'storageBucket': bucket_name})

    _bucket = storage.bucket(bucket_name)
    logger.info('Uploads go to Firebase Storage bucket %s', bucket_name)
    return _bucket


def get_bucket():
    if _bucket is None:
        return init_firebase(current_app.config['FIREBASE_STORAGE_BUCKET'])
    return _bucket
