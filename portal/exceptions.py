"""
Error taxonomy and the unified API error envelope.

Services raise these exceptions; the DRF exception handler below renders
them (and every other error) as ``{'ok': False, 'error': {...}}`` so no
failure reaches the client as an unstructured 500 page.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class PortalError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'portal_error'
    default_detail = 'Une erreur est survenue.'


class InvalidInput(PortalError):
    """Malformed upload, oversized comment and similar; nothing was written."""
    default_code = 'validation'
    default_detail = 'Données invalides.'


class BadCredential(PortalError):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = 'authorization'
    default_detail = 'Mot de passe incorrect.'


class StoreUnavailable(PortalError):
    """The database refused an operation; the store is unchanged."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = 'remote'
    default_detail = 'Le stockage est momentanément indisponible.'


class PartialReplace(PortalError):
    """A non-transactional roster replace stopped after mutating the store.

    Operators must re-run the import: the roster may be empty or partially
    populated.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = 'partial_replace'
    default_detail = 'Mise à jour partielle : le planning doit être réimporté.'


class FeatureDisabled(PortalError):
    status_code = status.HTTP_501_NOT_IMPLEMENTED
    default_code = 'disabled'
    default_detail = 'Fonctionnalité désactivée sur ce serveur.'


def error_payload(code: str, message, **extra) -> dict:
    return {'ok': False, 'error': {'code': code, 'message': message, **extra}}


def first_error_message(errors) -> str:
    """Flatten DRF's nested error structure into one readable message."""
    if isinstance(errors, list):
        for index, item in enumerate(errors):
            message = first_error_message(item)
            if message:
                return f"[{index + 1}] {message}" if isinstance(item, dict) and item else message
        return ''
    if isinstance(errors, dict):
        for field, item in errors.items():
            message = first_error_message(item)
            if message:
                return message if field in ('non_field_errors', 'detail') else f"{field} : {message}"
        return ''
    return str(errors)


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('Unhandled error in %s', context.get('view'), exc_info=exc)
        return Response(error_payload('server_error', str(exc)), status=500)
    if isinstance(exc, PortalError):
        return Response(error_payload(exc.default_code, str(exc.detail)), status=resp.status_code)
    if isinstance(exc, ValidationError):
        return Response(error_payload('validation', first_error_message(resp.data), fields=resp.data), status=resp.status_code)
    # normalize response
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    code = getattr(exc, 'default_code', 'api_error')
    return Response(error_payload(code, detail), status=resp.status_code, headers=_passthrough_headers(resp))


def _passthrough_headers(resp) -> dict:
    # keep Retry-After from throttled responses
    return {k: v for k, v in resp.items() if k in ('Retry-After',)}
