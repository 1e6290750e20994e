"""
Django settings for ispdesk project.

Every deployment value is read from the environment. Values for a
particular installation may be overridden in ispdesk/local_settings.py.
"""

import os
import sys

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _env_bool(name: str, default=False) -> bool:
    val = os.environ.get(name)
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> list:
    return [i.strip() for i in os.environ.get(name, default).split(",") if i.strip()]


# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get("SECRET_KEY", "ispdesk-dev-secret-key")

DEBUG = _env_bool("APP_DEBUG", False)

ALLOWED_HOSTS = _env_list("ALLOWED_HOSTS", "*")

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "django.contrib.sites",
    "django.contrib.admin",
    "rest_framework",
    "rest_framework.authtoken",
    "django_filters",
    "encrypted_model_fields",
    "ispdesk",
    "profiles",
    "services.apps.ServicesConfig",
    "customers.apps.CustomersConfig",
    "inventory.apps.InventoryConfig",
    "fin_app.apps.FinAppConfig",
    "messenger.apps.MessengerConfig",
    "gateways.apps.GatewaysConfig",
    "devices.apps.DevicesConfig",
    "radiusapp.apps.RadiusAppConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "ispdesk.lib.mixins.CustomCurrentSiteMiddleware",
]

ROOT_URLCONF = "ispdesk.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "ispdesk.wsgi.application"

if os.environ.get("POSTGRES_HOST"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "CONN_MAX_AGE": 300,
            "NAME": os.environ.get("POSTGRES_DB", "ispdesk"),
            "USER": os.environ.get("POSTGRES_USER", "postgres"),
            "PASSWORD": os.environ.get("POSTGRES_PASSWORD", ""),
            "HOST": os.environ.get("POSTGRES_HOST"),
            "PORT": int(os.environ.get("POSTGRES_PORT", 5432)),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": os.path.join(BASE_DIR, "db.sqlite3"),
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.AutoField"

AUTH_USER_MODEL = "profiles.UserProfile"

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
]

LANGUAGE_CODE = "en-us"

TIME_ZONE = os.environ.get("TIME_ZONE", "Africa/Nairobi")

USE_I18N = True

USE_TZ = True

STATIC_URL = "/static/"
STATIC_ROOT = os.path.join(BASE_DIR, "static")

MEDIA_URL = "/media/"
MEDIA_ROOT = os.path.join(BASE_DIR, "media")

SITE_ID = None

REST_FRAMEWORK = {
    "DEFAULT_PERMISSION_CLASSES": (
        "rest_framework.permissions.IsAuthenticated",
        "rest_framework.permissions.IsAdminUser",
    ),
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework.authentication.TokenAuthentication",
        "rest_framework.authentication.SessionAuthentication",
    ),
    "DEFAULT_FILTER_BACKENDS": ("django_filters.rest_framework.DjangoFilterBackend",),
    "DEFAULT_PAGINATION_CLASS": None,
    "TEST_REQUEST_DEFAULT_FORMAT": "json",
}

# Telephone or empty
TELEPHONE_REGEXP = r"^(\+?\d{9,15})?$"

# Secret word for auth to api views by hash
API_AUTH_SECRET = os.environ.get("API_AUTH_SECRET", "ispdesk-dev-api-secret")

# Allowed subnet for api
# Fox example: API_AUTH_SUBNET = ('127.0.0.0/8', '10.0.0.0/8', '192.168.0.0/16')
API_AUTH_SUBNET = _env_list("API_AUTH_SUBNET", "127.0.0.0/8")

# Encrypted fields
# This is example, change key for your own secret key
FIELD_ENCRYPTION_KEY = os.environ.get("FIELD_ENCRYPTION_KEY", "aGVsbG8td29ybGQtdGhpcy1pcy1hLXRlc3Qta2V5ISE=")

TESTING = (len(sys.argv) > 1 and sys.argv[1] == "test") or "pytest" in sys.modules

# Celery
CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_TASK_ALWAYS_EAGER = _env_bool("CELERY_TASK_ALWAYS_EAGER", TESTING)
CELERY_TASK_EAGER_PROPAGATES = False
CELERY_TIMEZONE = TIME_ZONE

# M-Pesa Daraja
MPESA = {
    "BASE_URL": os.environ.get("MPESA_BASE_URL", "https://sandbox.safaricom.co.ke"),
    "CONSUMER_KEY": os.environ.get("MPESA_CONSUMER_KEY", ""),
    "CONSUMER_SECRET": os.environ.get("MPESA_CONSUMER_SECRET", ""),
    "PASSKEY": os.environ.get("MPESA_PASSKEY", ""),
    "SHORTCODE": os.environ.get("MPESA_SHORTCODE", "174379"),
    "CALLBACK_URL": os.environ.get("MPESA_CALLBACK_URL", "https://localhost/api/fin/mpesa/callback/stk/"),
    "TIMEOUT": int(os.environ.get("MPESA_TIMEOUT", 30)),
}

FAMILY_BANK = {
    "TOKEN_URL": os.environ.get("FAMILY_BANK_TOKEN_URL", "https://openbank.familybank.co.ke:8083/connect/token"),
    "STK_URL": os.environ.get("FAMILY_BANK_STK_URL", "https://openbank.familybank.co.ke:8084/api/v1/mpesa/stkpush/"),
    "CLIENT_ID": os.environ.get("FAMILY_BANK_CLIENT_ID", ""),
    "CLIENT_SECRET": os.environ.get("FAMILY_BANK_CLIENT_SECRET", ""),
    "SCOPE": os.environ.get("FAMILY_BANK_SCOPE", ""),
    "MERCHANT_CODE": os.environ.get("FAMILY_BANK_MERCHANT_CODE", ""),
    "CALLBACK_URL": os.environ.get(
        "FAMILY_BANK_CALLBACK_URL", "https://localhost/api/fin/family-bank/callback/stk/"
    ),
    "TIMEOUT": int(os.environ.get("FAMILY_BANK_TIMEOUT", 30)),
}

# Sms gateway: "africastalking" or "celcomafrica"
SMS_BACKEND = os.environ.get("SMS_BACKEND", "africastalking")
SMS_SENDER_ID = os.environ.get("SMS_SENDER_ID", "INTERNET")
AFRICASTALKING_USERNAME = os.environ.get("AFRICASTALKING_USERNAME", "sandbox")
AFRICASTALKING_API_KEY = os.environ.get("AFRICASTALKING_API_KEY", "")
CELCOMAFRICA_API_KEY = os.environ.get("CELCOMAFRICA_API_KEY", "")
CELCOMAFRICA_URL = os.environ.get("CELCOMAFRICA_URL", "https://api.celcomafrica.com/v1/sms/send")

# External RADIUS orchestration webhook, empty for disabled
RADIUS_BACKEND_URL = os.environ.get("RADIUS_BACKEND_URL", "")
RADIUS_COA_PORT = int(os.environ.get("RADIUS_COA_PORT", 3799))
RADIUS_DICTIONARY_PATH = os.environ.get(
    "RADIUS_DICTIONARY_PATH",
    os.path.join(BASE_DIR, "radiusapp", "radius_commands", "dictionary")
)

# Seconds between network reconciliation runs
RECONCILE_INTERVAL = int(os.environ.get("RECONCILE_INTERVAL", 300))

# Billing
INSTALLATION_FEE = os.environ.get("INSTALLATION_FEE", "5000")
VAT_RATE = os.environ.get("VAT_RATE", "0.16")
RENEWAL_INVOICE_DUE_MINUTES = int(os.environ.get("RENEWAL_INVOICE_DUE_MINUTES", 30))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "ispdesk": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "celery": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
        },
    },
}

try:
    from ispdesk.local_settings import *  # noqa
except ImportError:
    pass
