# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# This package contains the Celery configuration and task definitions for
# background work that talks to third-party hosts (favicon probing, GitHub).
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: Task definitions (favicon resolution, GitHub sync)
# - config.py: Worker-specific settings
#
# Usage:
#   # Start worker
#   celery -A workers.celery_app worker --loglevel=info
#
#   # Submit task (from API)
#   from workers.tasks import resolve_startup_favicon
#   result = resolve_startup_favicon.delay(startup_id)
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
