"""Routes package for Review Tracker."""

from .action_items import action_items_bp
from .admin import admin_bp
from .auth import auth_bp
from .health import health_bp
from .manager import manager_bp
from .metrics import metrics_bp
from .notifications import notifications_bp
from .one_on_ones import one_on_ones_bp

__all__ = [
    "action_items_bp",
    "admin_bp",
    "auth_bp",
    "health_bp",
    "manager_bp",
    "metrics_bp",
    "notifications_bp",
    "one_on_ones_bp",
]
