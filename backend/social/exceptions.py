"""
Domain errors and the DRF exception handler.

Services raise the exceptions below; the handler turns every error, ours or
DRF's, into the one body shape the client understands: {"message": "..."}.
"""
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from django.db import IntegrityError
import logging

logger = logging.getLogger(__name__)


class WatchscapeError(Exception):
    """Base class for errors that map to a client-visible HTTP status."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Bad request'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(WatchscapeError):
    """A required field is missing or empty."""
    default_message = 'Missing required fields'


class NotFound(WatchscapeError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Not found'


class DuplicateEntry(WatchscapeError):
    """Uniqueness violation on a collection entry, pin, or user."""
    default_message = 'Duplicate entry'


class CapacityExceeded(WatchscapeError):
    default_message = 'Capacity exceeded'


class PermissionDenied(WatchscapeError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = 'You do not have permission to perform this action'


class UpstreamUnavailable(WatchscapeError):
    """The movie catalog could not be reached or answered with an error."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = 'Failed to fetch movies'


def _first_message(detail):
    """Pull a human-readable message out of a DRF error detail structure."""
    if isinstance(detail, dict):
        for field, value in detail.items():
            message = _first_message(value)
            if field in ('detail', 'non_field_errors'):
                return message
            return f"{field}: {message}"
        return 'Invalid request'
    if isinstance(detail, list):
        return _first_message(detail[0]) if detail else 'Invalid request'
    return str(detail)


def custom_exception_handler(exc, context):
    """
    Custom exception handler that:
    1. Maps domain errors to their status with a {"message"} body
    2. Normalizes DRF errors (validation, 404, throttling) to the same shape
    3. Logs and masks anything unexpected
    """
    if isinstance(exc, WatchscapeError):
        if exc.status_code >= 500:
            logger.error("%s: %s", type(exc).__name__, exc.message)
        else:
            logger.info("%s: %s", type(exc).__name__, exc.message)
        return Response({'message': exc.message}, status=exc.status_code)

    response = exception_handler(exc, context)

    if response is not None:
        response.data = {
            'message': _first_message(response.data),
            'details': response.data,
        }
        return response

    if isinstance(exc, IntegrityError):
        logger.warning(f"IntegrityError: {exc}")
        return Response(
            {'message': 'Data integrity error. This may be a duplicate entry.'},
            status=status.HTTP_400_BAD_REQUEST
        )

    logger.exception(f"Unhandled exception: {exc}")

    return Response(
        {'message': 'Server error'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
