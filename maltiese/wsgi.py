"""
WSGI config for the Maltiese project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "maltiese.settings")

application = get_wsgi_application()
