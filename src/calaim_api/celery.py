import os

from celery import Celery

# Django settings module for the worker and beat processes.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('calaim_api')

# Every Celery setting lives in settings.py under the CELERY_ prefix.
app.config_from_object('django.conf:settings', namespace='CELERY')

# Picks up tasks.py from every installed app.
app.autodiscover_tasks()
