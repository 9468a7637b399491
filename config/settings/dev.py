"""Development settings for the kennel booking project.

This module extends the base settings with development specific
configuration, such as enabling debug, allowing all hosts and rendering
logs for humans instead of JSON. Do not use these settings in production!
"""

import structlog

from .base import *  # noqa: F401,F403

# Enable debug mode for development
DEBUG = True

# Allow all hosts in development
ALLOWED_HOSTS = ['*']

# Readable console logs while developing
LOGGING['formatters']['json']['processor'] = structlog.dev.ConsoleRenderer()  # noqa: F405
