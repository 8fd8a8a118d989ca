"""
Permission classes for the shared administrative password.

The password is a capability token compared in constant time; it is not a
security boundary and there are no user accounts.
"""
import secrets

from django.conf import settings
from rest_framework.permissions import BasePermission

from .constants import ADMIN_PASSWORD_HEADER
from .exceptions import BadCredential


def admin_credential_from_request(request) -> str:
    """Return the credential sent with the request (header first, then body)."""
    value = request.headers.get(ADMIN_PASSWORD_HEADER)
    if value is None and isinstance(getattr(request, 'data', None), dict):
        value = request.data.get('password')
    return value or ''


def credential_matches(credential) -> bool:
    if not isinstance(credential, str) or not credential:
        return False
    return secrets.compare_digest(credential.encode(), settings.PORTAL_ADMIN_PASSWORD.encode())


class HasAdminCredential(BasePermission):
    """Allow access only to requests carrying the administrative password."""

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        if not credential_matches(admin_credential_from_request(request)):
            raise BadCredential()
        return True
