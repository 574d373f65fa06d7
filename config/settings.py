from pathlib import Path

from celery.schedules import crontab
from decouple import Csv, config

# -------------------------------
# Base directories
# -------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent

# -------------------------------
# Security and debug
# -------------------------------
SECRET_KEY = config('SECRET_KEY', default='calaim-dev-secret-key')
DEBUG = config('DEBUG', default=False, cast=bool)
ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1,testserver', cast=Csv())

SESSION_COOKIE_SECURE   = config('SESSION_COOKIE_SECURE', default=False, cast=bool)
CSRF_COOKIE_SECURE      = config('CSRF_COOKIE_SECURE', default=False, cast=bool)
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')

# -------------------------------
# Logging
# -------------------------------
LOG_LEVEL = config('LOG_LEVEL', default='INFO')
JSON_LOGS = config('JSON_LOGS', default=False, cast=bool)

# -------------------------------
# Redis / cache
# -------------------------------
REDIS_URL = config('REDIS_URL', default='')
if REDIS_URL:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.redis.RedisCache",
            "LOCATION": REDIS_URL,
        }
    }
else:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "calaim-local",
        }
    }

# -------------------------------
# Celery
# -------------------------------
CELERY_BROKER_URL                 = config('CELERY_BROKER_URL', default=REDIS_URL or 'memory://')
CELERY_RESULT_BACKEND             = config('CELERY_RESULT_BACKEND', default=REDIS_URL or 'cache+memory://')
CELERY_TASK_ACKS_LATE             = True
CELERY_TASK_REJECT_ON_WORKER_LOST = True
CELERY_WORKER_PREFETCH_MULTIPLIER = 1
CELERY_TASK_ALWAYS_EAGER          = config('CELERY_TASK_ALWAYS_EAGER', default=False, cast=bool)
CELERY_ACCEPT_CONTENT             = ["json"]
CELERY_TASK_SERIALIZER            = "json"
CELERY_TASK_QUEUES = {
    "default":      {"exchange": "default",      "routing_key": "default"},
    "dead_letter":  {"exchange": "dead_letter",  "routing_key": "dead_letter"},
    "members_sync": {"exchange": "members_sync", "routing_key": "members_sync"},
    "notifications": {"exchange": "notifications", "routing_key": "notifications"},
}
CELERY_TASK_DEFAULT_QUEUE = 'default'
CELERY_TASK_DEFAULT_EXCHANGE = 'default'
CELERY_TASK_DEFAULT_ROUTING_KEY = 'default'
CELERY_TASK_ROUTES = {
    "calaim_api.tasks.refresh_members_cache": {"queue": "members_sync"},
    "calaim_api.tasks.notify_flagged_visit":  {"queue": "notifications"},
}

# --- Celery beat ---
CELERY_BEAT_SCHEDULER = 'django_celery_beat.schedulers:DatabaseScheduler'

CELERY_BEAT_SCHEDULE = {
    # Incremental refresh of the members cache every hour.
    'members-cache-incremental-hourly': {
        'task': 'calaim_api.tasks.schedule_members_refresh',
        'schedule': crontab(minute=5),
        'args': ('incremental',),
    },
    # Forced full resync every night at 2 a.m.
    'members-cache-full-nightly': {
        'task': 'calaim_api.tasks.schedule_members_refresh',
        'schedule': crontab(minute=0, hour=2),
        'args': ('full', True),
    },
}

# -------------------------------
# Caspio API
# -------------------------------
CASPIO_BASE_URL      = config('CASPIO_BASE_URL', default='https://c1abd578.caspio.com')
CASPIO_CLIENT_ID     = config('CASPIO_CLIENT_ID', default='')
CASPIO_CLIENT_SECRET = config('CASPIO_CLIENT_SECRET', default='')
CASPIO_TIMEOUT       = config('CASPIO_TIMEOUT', default=30, cast=float)
CASPIO_MEMBERS_TABLE = config('CASPIO_MEMBERS_TABLE', default='CalAIM_tbl_Members')

# -------------------------------
# Members cache policy
# -------------------------------
MEMBERS_SYNC_PAGE_SIZE    = config('MEMBERS_SYNC_PAGE_SIZE', default=1000, cast=int)
MEMBERS_SYNC_MAX_PAGES    = config('MEMBERS_SYNC_MAX_PAGES', default=50, cast=int)
MEMBERS_CACHE_TTL_SECONDS = config('MEMBERS_CACHE_TTL_SECONDS', default=3600, cast=int)

ASSIGNMENT_SCAN_PAGE_SIZE       = config('ASSIGNMENT_SCAN_PAGE_SIZE', default=5000, cast=int)
ASSIGNMENT_SCAN_MAX_ROWS        = config('ASSIGNMENT_SCAN_MAX_ROWS', default=25000, cast=int)
ASSIGNMENT_MAX_CANDIDATE_TOKENS = config('ASSIGNMENT_MAX_CANDIDATE_TOKENS', default=6, cast=int)

# -------------------------------
# Visits & claims
# -------------------------------
VISIT_FEE_RATE            = config('VISIT_FEE_RATE', default=45, cast=int)
GAS_FLAT_RATE             = config('GAS_FLAT_RATE', default=20, cast=int)
VISIT_LOW_SCORE_THRESHOLD = config('VISIT_LOW_SCORE_THRESHOLD', default=40, cast=int)
AUTH_EXPIRY_PLANS         = config('AUTH_EXPIRY_PLANS', default='kaiser', cast=Csv())

# -------------------------------
# SendGrid / alerts
# -------------------------------
SENDGRID_API_KEY        = config('SENDGRID_API_KEY', default='')
DEFAULT_FROM_EMAIL      = config('DEFAULT_FROM_EMAIL', default='noreply@calaim.local')
SUPERVISOR_ALERT_EMAILS = config('SUPERVISOR_ALERT_EMAILS', default='', cast=Csv())

# -------------------------------
# Apps, Middleware, URLs
# -------------------------------
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'drf_yasg',
    'django_celery_beat',
    'calaim_api.apps.CalaimApiConfig',
    'plugins.django_interface.apps.DjangoInterfaceConfig',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'plugins.django_interface.request_middleware.RequestContextMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
]

ROOT_URLCONF = 'calaim_api.urls'
WSGI_APPLICATION = 'calaim_api.wsgi.application'
ASGI_APPLICATION = 'calaim_api.asgi.application'

# -------------------------------
# Templates
# -------------------------------
TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [BASE_DIR / 'templates'],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

# -------------------------------
# REST Framework
# -------------------------------
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "plugins.django_interface.authentication.TrustedStaffHeaderAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": (
        "rest_framework.permissions.IsAuthenticated",
    ),
}
SWAGGER_SETTINGS = {
    'SECURITY_DEFINITIONS': {
        'StaffEmail': {
            'type': 'apiKey', 'name': 'X-Staff-Email', 'in': 'header'
        }
    },
}

# -------------------------------
# Database
# -------------------------------
DB_NAME = config('DB_NAME', default='')
if DB_NAME:
    DATABASES = {
        'default': {
            'ENGINE':   'django.db.backends.postgresql',
            'NAME':     DB_NAME,
            'USER':     config('DB_USER', default=''),
            'PASSWORD': config('DB_PASS', default=''),
            'HOST':     config('DB_HOST', default='localhost'),
            'PORT':     config('DB_PORT', default='5432'),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME':   BASE_DIR / 'db.sqlite3',
        }
    }

# -------------------------------
# Internationalization
# -------------------------------
LANGUAGE_CODE = 'en-us'
TIME_ZONE     = 'America/Los_Angeles'
USE_I18N      = True
USE_TZ        = True

# -------------------------------
# Static files
# -------------------------------
STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
