from rest_framework.throttling import AnonRateThrottle


class CommentRateThrottle(AnonRateThrottle):
    scope = 'comment_write'


class LikeRateThrottle(AnonRateThrottle):
    scope = 'like'


class AdminRateThrottle(AnonRateThrottle):
    scope = 'admin'
