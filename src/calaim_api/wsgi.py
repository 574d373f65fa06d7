import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# DI containers are built by CalaimApiConfig.ready()
application = get_wsgi_application()
