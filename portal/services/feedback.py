import logging

from portal.models import UserFeedback

logger = logging.getLogger(__name__)


def submit_feedback(*, type: str, content: str) -> UserFeedback:
    fb = UserFeedback.objects.create(type=type, content=content.strip())
    logger.info('Feedback %s received (%s)', fb.id, fb.type)
    return fb
