# Shared secret header used by the inference collaborator
BILLING_SECRET_HEADER = "X-Billing-Secret"

# JWT Configuration
JWT_ALGORITHM = "HS256"

# Authentication endpoints configuration
SKIP_AUTH_PATHS = {
    "/openapi.json",
    "/docs",
    "/redoc",
    "/health",
    "/health/liveness",
    "/stripe/webhook",
    "/v1/pricing/packages",
}

SKIP_AUTH_PATTERNS: list = [
    ("GET", r"^/v1/pricing/packages/[a-fA-F0-9-]+/?$"),  # public package detail
]

# Endpoints called service-to-service with the billing secret instead of a JWT
SERVICE_AUTH_PATTERNS: list = [
    ("POST", r"^/v1/usage/record/?$"),
    ("POST", r"^/v1/usage/[a-fA-F0-9-]+/refund/?$"),
    ("GET", r"^/v1/usage/balance-check/?$"),
]

# Pagination
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200
