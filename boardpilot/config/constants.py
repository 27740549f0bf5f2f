"""Fixed endpoints and defaults shared by the service clients."""

TRELLO_BASE_URL = "https://api.trello.com/1"

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_CALENDAR_BASE_URL = "https://www.googleapis.com/calendar/v3"
GOOGLE_CALENDAR_SCOPE = "https://www.googleapis.com/auth/calendar"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"

# Seconds. Applies to every outbound request.
DEFAULT_HTTP_TIMEOUT = 15.0

# Seconds a board-name index stays valid before the next lookup refetches it.
DEFAULT_BOARD_CACHE_TTL = 300.0

# Service-account assertions are valid for one hour; refresh a minute early.
SERVICE_ACCOUNT_TOKEN_LIFETIME = 3600
TOKEN_EXPIRY_MARGIN = 60
