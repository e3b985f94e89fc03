"""Storage for uploaded publication documents."""
import logging
import os
import time

from flask import current_app
from werkzeug.utils import secure_filename

from labsite.errors import ValidationError

logger = logging.getLogger(__name__)

DOCUMENT_SUBDIR = 'Publications'


def has_upload(file):
    return file is not None and bool(file.filename)


def _extension(filename):
    if '.' not in filename:
        return ''
    return filename.rsplit('.', 1)[1].lower()


def _size(file):
    stream = file.stream
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


def validate_document(file):
    """Return a field error message, or None when the upload is acceptable."""
    allowed = current_app.config['ALLOWED_DOCUMENT_EXTENSIONS']
    filename = secure_filename(file.filename)
    if _extension(filename) not in allowed:
        return 'Invalid file type. Allowed: ' + ', '.join(sorted(allowed))
    if _size(file) > current_app.config['MAX_DOCUMENT_SIZE']:
        limit_mb = current_app.config['MAX_DOCUMENT_SIZE'] // (1024 * 1024)
        return f'Document exceeds the {limit_mb}MB limit'
    return None


def save_document(file, owner_id):
    """Write the upload under UPLOAD_FOLDER and return its relative path."""
    error = validate_document(file)
    if error:
        raise ValidationError({'document': error})

    ext = _extension(secure_filename(file.filename))
    filename = f"{owner_id}_PUB_{int(time.time() * 1000)}.{ext}"
    target_dir = os.path.join(current_app.config['UPLOAD_FOLDER'], DOCUMENT_SUBDIR)
    os.makedirs(target_dir, exist_ok=True)
    file.save(os.path.join(target_dir, filename))

    relative_path = f"{DOCUMENT_SUBDIR}/{filename}"
    logger.info('Stored document %s', relative_path)
    return relative_path


def delete_document(relative_path):
    if not relative_path:
        return
    full_path = os.path.join(current_app.config['UPLOAD_FOLDER'], relative_path)
    if os.path.exists(full_path):
        os.remove(full_path)
        logger.info('Removed document %s', relative_path)
    else:
        logger.warning('Document %s was already missing from storage', relative_path)
