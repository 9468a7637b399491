"""Test settings for the kennel booking project.

SQLite, eager Celery, plain static storage and a known webhook secret so the
suite runs without external services. Set DB_ENGINE to
django.db.backends.postgresql to run the multi-threaded race tests.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': get_env('DB_ENGINE', 'django.db.backends.sqlite3'),  # noqa: F405
        'NAME': get_env('DB_NAME', ':memory:'),  # noqa: F405
        'USER': get_env('DB_USER', ''),  # noqa: F405
        'PASSWORD': get_env('DB_PASSWORD', ''),  # noqa: F405
        'HOST': get_env('DB_HOST', ''),  # noqa: F405
        'PORT': get_env('DB_PORT', ''),  # noqa: F405
    }
}

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

RESERVATION_TTL_MINUTES = 10
RESERVATION_SWEEP_INTERVAL_SECONDS = 60
CAPACITY_FALLBACKS = {
    'Daycare': 10,
    'Boarding Small': 10,
    'Boarding Large': 8,
    'Trial Day': 8,
}

STRIPE_SECRET_KEY = ''
STRIPE_WEBHOOK_SECRET = 'whsec_test_secret'
