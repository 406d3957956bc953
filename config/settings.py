from pathlib import Path
import os

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("QUICKSTART_SECRET_KEY", "unsafe-dev-secret-key")
DEBUG = os.environ.get("QUICKSTART_DEBUG", "0") == "1"

ALLOWED_HOSTS = []

INSTALLED_APPS = [
    "quickstart",
]

# Nothing is stored locally; all data lives in Firebase
DATABASES = {}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = False
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Firebase
FIREBASE_SERVICE_ACCOUNT = os.environ.get("FIREBASE_SERVICE_ACCOUNT")
FIREBASE_SERVICE_ACCOUNT_PATH = os.environ.get(
    "FIREBASE_SERVICE_ACCOUNT_PATH", "service-account.json"
)
FIREBASE_PROJECT_ID = os.environ.get("FIREBASE_PROJECT_ID")
FIREBASE_DATABASE_URL = os.environ.get(
    "FIREBASE_DATABASE_URL", "https://<YOUR-DATABASE>.firebaseio.com/"
)

# Remote Config REST API
REMOTE_CONFIG_BASE_URL = "https://firebaseremoteconfig.googleapis.com"
REMOTE_CONFIG_TEMPLATE_PATH = os.environ.get("REMOTE_CONFIG_TEMPLATE_PATH", "config.json")

# Cloud Messaging REST API
FCM_BASE_URL = "https://fcm.googleapis.com"
FCM_DEFAULT_TOPIC = os.environ.get("FCM_DEFAULT_TOPIC", "news")

HTTP_TIMEOUT_SECONDS = float(os.environ.get("QUICKSTART_HTTP_TIMEOUT", "30"))

# Outgoing notification emails
EMAIL_BACKEND = os.environ.get(
    "QUICKSTART_EMAIL_BACKEND", "django.core.mail.backends.console.EmailBackend"
)
DEFAULT_FROM_EMAIL = os.environ.get("QUICKSTART_FROM_EMAIL", "noreply@example.com")

# Weekly top posts email: Sundays at 14:30 (cron "0 30 14 ? * SUN *")
WEEKLY_EMAIL_WEEKDAY = 6
WEEKLY_EMAIL_HOUR = 14
WEEKLY_EMAIL_MINUTE = 30
TOP_POSTS_LIMIT = 5

# Logging Configuration
LOG_DIR = BASE_DIR / "logs"
LOG_DIR.mkdir(exist_ok=True)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "[{asctime}] {levelname} {name} {message}",
            "style": "{",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        "simple": {
            "format": "[{asctime}] {levelname} {message}",
            "style": "{",
            "datefmt": "%H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
        "file": {
            "class": "logging.FileHandler",
            "filename": LOG_DIR / "quickstart.log",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "django": {
            "handlers": ["console", "file"],
            "level": "INFO",
        },
        "quickstart": {
            "handlers": ["console", "file"],
            "level": "DEBUG" if DEBUG else "INFO",
            "propagate": False,
        },
    },
}
