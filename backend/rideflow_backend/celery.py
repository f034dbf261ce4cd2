"""Celery application for background ride processing."""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "rideflow_backend.settings")

app = Celery("rideflow_backend")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
