"""Audit trail of administrative actions.

There are no user accounts, so an event records what was done, not who
did it; correlate with request logs when that matters.
"""
import logging
from typing import Any, Dict, Optional

from portal.models import AuditEvent

logger = logging.getLogger(__name__)


def log_action(*, action: str, object_type: Optional[str] = None, object_id: Optional[int] = None,
               detail: Optional[Dict[str, Any]] = None) -> AuditEvent:
    event = AuditEvent.objects.create(
        action=action,
        object_type=object_type,
        object_id=object_id,
        detail=detail or {},
    )
    logger.debug('Audit %s %s/%s', action, object_type, object_id)
    return event
