"""Application errors and the handlers that render them."""
import logging

from flask import flash, jsonify, redirect, request
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class LabError(Exception):
    status_code = 400
    message = 'Request could not be processed.'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self):
        return {'success': False, 'message': self.message}


class ValidationError(LabError):
    """Carries one message per offending field."""
    message = 'Missing or invalid fields'

    def __init__(self, errors, message=None):
        super().__init__(message)
        self.errors = dict(errors)

    def to_dict(self):
        data = super().to_dict()
        data['errors'] = self.errors
        return data


class PublishedDateLockedError(ValidationError):
    def __init__(self):
        super().__init__(
            {'published_date': 'Published date cannot be changed once set'},
            message='Published date cannot be changed once set',
        )


class PermissionDenied(LabError):
    status_code = 403
    message = 'You do not have permission to perform this action.'


class ApprovedPublicationError(PermissionDenied):
    message = 'Approved publications cannot be edited'


class NotFound(LabError):
    status_code = 404
    message = 'Not found'


class InvalidTransitionError(LabError):
    status_code = 409
    message = 'Invalid approval status transition'


class DocumentReplaceError(LabError):
    status_code = 409
    message = 'Remove the existing document before uploading a new one'


def wants_json():
    return request.path.startswith('/api/') or request.is_json


def register_error_handlers(app):
    """API callers get JSON bodies; page requests get a flash and a redirect back."""

    @app.errorhandler(LabError)
    def handle_lab_error(error):
        logger.info('%s on %s: %s', type(error).__name__, request.path, error.message)
        if wants_json():
            return jsonify(error.to_dict()), error.status_code
        flash(error.message, 'error')
        return redirect(request.referrer or '/')

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        if wants_json():
            return jsonify({'success': False, 'message': error.description}), error.code
        return error
