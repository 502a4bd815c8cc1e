"""
WSGI entry point for the university registry API.

Environment variables are read from `.env` before Django configures itself,
so POSTGRES_*, DJANGO_* and the throttle overrides can live there.
"""

import os

from django.core.wsgi import get_wsgi_application

from univerify_backend.env import load_env

load_env()
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "univerify_backend.settings")

application = get_wsgi_application()
