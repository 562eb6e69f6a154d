"""HTTP слой (Flask blueprints)."""

from expense_tracker.api.recurring import recurring_bp
from expense_tracker.api.cron import cron_bp
from expense_tracker.api.transactions import transactions_bp
from expense_tracker.api.notifications import notifications_bp
from expense_tracker.api.savings import savings_bp
from expense_tracker.api.users import users_bp

BLUEPRINTS = (recurring_bp, cron_bp, transactions_bp, notifications_bp, savings_bp, users_bp)

__all__ = [
    "BLUEPRINTS",
    "recurring_bp",
    "cron_bp",
    "transactions_bp",
    "notifications_bp",
    "savings_bp",
    "users_bp",
]
