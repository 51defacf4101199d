import os
from pathlib import Path
from dotenv import load_dotenv
import dj_database_url

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

SECRET_KEY = os.environ.get("SECRET_KEY", os.environ.get("DJANGO_SECRET_KEY", "changeme"))
DEBUG = os.getenv("DEBUG", os.getenv("DJANGO_DEBUG", "True")) == "True"
ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "127.0.0.1,localhost").split(",")

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "businesses.apps.BusinessesConfig",
    "accounting.apps.AccountingConfig",
    "reporting.apps.ReportingConfig",
]

MIDDLEWARE = []

# =============================================================================
# Database Configuration
# =============================================================================
DATABASES = {
    "default": dj_database_url.config(
        env="DATABASE_URL",
        default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}",
        conn_max_age=600,
    )
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

REST_FRAMEWORK = {
    "COERCE_DECIMAL_TO_STRING": True,
}

# =============================================================================
# Ledger Configuration
# =============================================================================
# Attempts at allocating an entry number before giving up on a
# (business, entry_number) uniqueness collision.
LEDGER_ENTRY_NUMBER_RETRIES = int(os.getenv("LEDGER_ENTRY_NUMBER_RETRIES", "5"))
LEDGER_DEFAULT_PAGE_SIZE = int(os.getenv("LEDGER_DEFAULT_PAGE_SIZE", "50"))
LEDGER_MAX_PAGE_SIZE = int(os.getenv("LEDGER_MAX_PAGE_SIZE", "200"))

# =============================================================================
# Reporting Configuration
# =============================================================================
# Rate rows older than the period start by more than this are not loaded.
REPORTING_RATE_LOOKBACK_YEARS = int(os.getenv("REPORTING_RATE_LOOKBACK_YEARS", "3"))
REPORTING_DEFAULT_CURRENCY = os.getenv("REPORTING_DEFAULT_CURRENCY", "USD")

# =============================================================================
# Structured Logging Configuration
# =============================================================================
from ops.logging_config import get_logging_config
LOGGING = get_logging_config(DEBUG)

