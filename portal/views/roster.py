"""
Duty roster endpoints.

``GET /api/weeks`` is public and cached; ``POST /api/weeks/replace`` is the
administrative bulk replace.  The replace checks the shared password
itself (rather than through a permission class) because the credential
check is part of the replace contract: a mismatch must be reported before
the document is even looked at.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, throttle_classes
from rest_framework.response import Response

from ..permissions import admin_credential_from_request
from ..services.roster import active_week_index, list_weeks, replace_roster, roster_revision
from ..throttling import AdminRateThrottle


@api_view(['GET'])
def weeks(request):
    """Return the roster and the index of the week active right now.

    ``activeIndex`` is -1 when no week covers today; the client then shows
    an explicit "no roster for today" state.
    """
    data = list_weeks()
    return Response({
        'ok': True,
        'data': data,
        'activeIndex': active_week_index(data),
        'revision': roster_revision(),
    })


@api_view(['POST'])
@throttle_classes([AdminRateThrottle])
def weeks_replace(request):
    """Replace the whole roster.

    The body is either the roster document itself (a JSON list) with the
    password in the ``X-Admin-Password`` header, or an object
    ``{"password": ..., "weeks": [...]}``.
    """
    body = request.data
    document = body.get('weeks') if isinstance(body, dict) else body
    result = replace_roster(admin_credential_from_request(request), document)
    return Response({
        'ok': True,
        'message': 'Les données des pharmacies ont été mises à jour avec succès.',
        **result,
    })
