import os
from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'hostel_mess.settings')

app = Celery('hostel_mess')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
app.autodiscover_tasks(related_name='notifications')
