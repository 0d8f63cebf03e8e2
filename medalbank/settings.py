"""Django settings for the MedalBank ledger API.


The API tracks per-user, per-store medal balances:
- Deposits / withdrawals against a single balance row, recorded as immutable transactions
- Ordered all-or-nothing batches
- Read-only history, statistics and trends


Authentication is a placeholder provider (no secrets); see core.adapters.auth_adapter.
"""

import os
from pathlib import Path

from corsheaders.defaults import default_headers


BASE_DIR = Path(__file__).resolve().parent.parent
SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-only-insecure-key")
DEBUG = os.getenv("DEBUG", "1") in ("1", "true", "True", "yes")
ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "*").split(",")

def env_bool(name, default=""):
    v = os.getenv(name, default)
    return v.lower() in ("1", "true", "yes", "on")

def env_int(name, default):
    v = os.getenv(name)
    return int(v) if v else default

#######################
# Ledger limits
MEDALBANK_MAX_TRANSACTION_AMOUNT = env_int("MEDALBANK_MAX_TRANSACTION_AMOUNT", 100000)
MEDALBANK_MAX_BATCH_SIZE = env_int("MEDALBANK_MAX_BATCH_SIZE", 50)
MEDALBANK_MAX_BULK_COUNT = 20
MEDALBANK_MAX_LIST_LIMIT = 100
MEDALBANK_DEFAULT_LIST_LIMIT = 10

# Sliding-window rate limit per client address
MEDALBANK_RATE_LIMIT_ENABLED = env_bool("MEDALBANK_RATE_LIMIT_ENABLED", "1")
MEDALBANK_RATE_LIMIT_REQUESTS = env_int("MEDALBANK_RATE_LIMIT_REQUESTS", 100)
MEDALBANK_RATE_LIMIT_WINDOW = env_int("MEDALBANK_RATE_LIMIT_WINDOW", 60)

# Dotted path to the AuthProvider implementation
MEDALBANK_AUTH_PROVIDER = os.getenv(
    "MEDALBANK_AUTH_PROVIDER", "core.adapters.auth_adapter.PlaceholderAuthProvider"
)

# Origins the frontend is served from (comma-separated); read by django-cors-headers
CORS_ALLOWED_ORIGINS = [
    o.strip()
    for o in os.getenv(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173",
    ).split(",")
    if o.strip()
]
CORS_ALLOW_CREDENTIALS = True
CORS_ALLOW_HEADERS = (*default_headers, "x-request-id")

# Reverse proxies whose X-Forwarded-For is trusted for the client address (comma-separated IPs)
MEDALBANK_TRUSTED_PROXIES = [p.strip() for p in os.getenv("MEDALBANK_TRUSTED_PROXIES", "").split(",") if p.strip()]

# Security headers
SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = "strict-origin-when-cross-origin"
X_FRAME_OPTIONS = "DENY"
#######################


INSTALLED_APPS = [
	"corsheaders",
	# local apps
	"core",
	"api",
]


MIDDLEWARE = [
	"api.middleware.RequestLogMiddleware",
	"django.middleware.security.SecurityMiddleware",
	"django.middleware.clickjacking.XFrameOptionsMiddleware",
	"corsheaders.middleware.CorsMiddleware",
	"api.middleware.RateLimitMiddleware",
	"django.middleware.common.CommonMiddleware",
	"api.middleware.JsonErrorMiddleware",
]


ROOT_URLCONF = "medalbank.urls"
TEMPLATES = []


WSGI_APPLICATION = "medalbank.wsgi.application"


DB_ENGINE = os.getenv("DB_ENGINE", "sqlite")
if DB_ENGINE == "postgres":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.getenv("POSTGRES_DB", "medalbank"),
            "USER": os.getenv("POSTGRES_USER", "medalbank"),
            "PASSWORD": os.getenv("POSTGRES_PASSWORD", "medalbank"),
            "HOST": os.getenv("POSTGRES_HOST", "localhost"),
            "PORT": os.getenv("POSTGRES_PORT", "5432"),
        }
    }
else:
    # IMMEDIATE takes the write lock at BEGIN so concurrent ledger writes queue on the busy timeout
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": os.getenv("SQLITE_PATH", BASE_DIR / "medalbank.db"),
            "OPTIONS": {
                "transaction_mode": "IMMEDIATE",
                "timeout": env_int("SQLITE_TIMEOUT", 20),
            },
            "TEST": {
                "NAME": os.getenv("SQLITE_TEST_PATH", str(BASE_DIR / "test_medalbank.db")),
            },
        }
    }


LANGUAGE_CODE = "en-us"
TIME_ZONE = os.getenv("TIME_ZONE", "UTC")
USE_I18N = False
USE_TZ = True


DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# structlog level; defaults to DEBUG when DEBUG is on, INFO otherwise
LOG_LEVEL = os.getenv("LOG_LEVEL") or None
APPEND_SLASH = False


# Seed identity for the demo endpoint: one user with an unscoped starting balance.
DEMO_USERNAME = os.getenv("DEMO_USERNAME", "testuser")
DEMO_USER_EMAIL = os.getenv("DEMO_USER_EMAIL", "test@example.com")
DEMO_INITIAL_BALANCE = env_int("DEMO_INITIAL_BALANCE", 1000)
