import os

from celery import Celery
from celery.schedules import crontab

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core_backend.settings")

app = Celery("core_backend")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

app.conf.beat_schedule = {
    "cleanup-expired-carts": {
        "task": "cart.tasks.cleanup_expired_carts",
        "schedule": crontab(minute=15),
    },
    # Lazy expiry already runs on account reads; this catches dormant accounts
    "expire-loyalty-points": {
        "task": "loyalty.tasks.expire_loyalty_points",
        "schedule": crontab(minute=30, hour=3),
    },
}
