"""Limits and keys shared by the server API and the client engine."""

WEEK_LABEL_SEPARATOR = " au "
WEEK_LABEL_DATE_FORMAT = "%d/%m/%y"
DEFAULT_CUTOVER_HOUR = 7

COMMENT_MIN_LENGTH = 1
COMMENT_MAX_LENGTH = 300

FEEDBACK_MIN_LENGTH = 10
FEEDBACK_MAX_LENGTH = 500

ADMIN_PASSWORD_HEADER = "X-Admin-Password"

# Device-local storage keys
LOCAL_ROSTER_KEY = "pharmaguard_pharmacies_data"
LIKED_POSTS_KEY = "likedPosts"
