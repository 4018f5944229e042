"""
ASGI config for stockalerts project.
"""
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "stockalerts.settings")

application = get_asgi_application()
