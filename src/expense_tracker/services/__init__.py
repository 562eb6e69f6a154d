__all__ = [
    "add_months",
    "parse_frequency",
    "calculate_next_due_date",
    "GenerationSummary",
    "GenerationFailure",
    "create_recurring_transaction",
    "get_recurring_transaction",
    "get_recurring_transactions",
    "update_recurring_transaction",
    "deactivate_recurring_transaction",
    "delete_recurring_transaction",
    "get_due_recurring_transactions",
    "generate_recurring_transactions",
    "create_transaction",
    "get_transaction",
    "get_transactions",
    "update_transaction",
    "delete_transaction",
    "get_period_totals",
    "search_transactions",
    "create_notification",
    "get_notifications",
    "mark_notification_read",
    "mark_all_read",
    "delete_notification",
    "check_upcoming_recurring_transactions",
    "check_upcoming_recurring_bills",
    "check_budget_overspending",
    "run_all_checks",
    "get_user_ids_for_checks",
    "create_savings_goal",
    "get_savings_goals",
    "update_savings_goal",
    "delete_savings_goal",
    "get_user_preferences",
    "update_user_preferences",
    "get_setup_progress",
    "reset_setup",
]

from expense_tracker.services.recurrence_service import (
    add_months,
    parse_frequency,
    calculate_next_due_date
)

from expense_tracker.services.recurring_transaction_service import (
    GenerationSummary,
    GenerationFailure,
    create_recurring_transaction,
    get_recurring_transaction,
    get_recurring_transactions,
    update_recurring_transaction,
    deactivate_recurring_transaction,
    delete_recurring_transaction,
    get_due_recurring_transactions,
    generate_recurring_transactions
)

from expense_tracker.services.transaction_service import (
    create_transaction,
    get_transaction,
    get_transactions,
    update_transaction,
    delete_transaction,
    get_period_totals,
    search_transactions
)

from expense_tracker.services.notification_service import (
    create_notification,
    get_notifications,
    mark_notification_read,
    mark_all_read,
    delete_notification,
    check_upcoming_recurring_transactions,
    check_upcoming_recurring_bills,
    check_budget_overspending,
    run_all_checks,
    get_user_ids_for_checks
)

from expense_tracker.services.savings_service import (
    create_savings_goal,
    get_savings_goals,
    update_savings_goal,
    delete_savings_goal
)

from expense_tracker.services.user_preferences_service import (
    get_user_preferences,
    update_user_preferences,
    get_setup_progress,
    reset_setup
)
