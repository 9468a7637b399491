"""Test settings against PostgreSQL.

Runs the whole suite, including the parallel booking tests marked
``postgres`` that SQLite cannot exercise:

    DJANGO_SETTINGS_MODULE=config.settings.test_postgres pytest
    DJANGO_SETTINGS_MODULE=config.settings.test_postgres pytest -m postgres
"""

from .test import *  # noqa: F401,F403

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': get_env('DB_NAME', 'kennel_booking'),  # noqa: F405
        'USER': get_env('DB_USER', 'postgres'),  # noqa: F405
        'PASSWORD': get_env('DB_PASSWORD', 'postgres'),  # noqa: F405
        'HOST': get_env('DB_HOST', 'localhost'),  # noqa: F405
        'PORT': get_env('DB_PORT', '5432'),  # noqa: F405
        'TEST': {'NAME': get_env('DB_TEST_NAME', 'test_kennel_booking')},  # noqa: F405
    }
}
