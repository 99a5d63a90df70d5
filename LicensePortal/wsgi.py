"""
WSGI config for the License Portal project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "LicensePortal.settings.prod")

application = get_wsgi_application()
