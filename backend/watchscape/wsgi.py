"""
WSGI config for watchscape project.
"""
import os
from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'watchscape.settings')
application = get_wsgi_application()
