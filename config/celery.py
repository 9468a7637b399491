import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("kennel_booking")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

_sweep_interval = float(os.environ.get("RESERVATION_SWEEP_INTERVAL_SECONDS", "60"))

app.conf.beat_schedule = {
    # Expire abandoned holds and hand their capacity back
    "sweep-expired-holds": {
        "task": "reservations.sweep_expired_holds",
        "schedule": _sweep_interval,
        "options": {"expires": _sweep_interval * 0.8},
    },
}
