import os
from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'ispdesk.settings')
app = Celery('ispdesk')
app.config_from_object('django.conf:settings', namespace='CELERY')

app.autodiscover_tasks()
