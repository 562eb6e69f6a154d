"""Expense Tracker: бэкенд учёта личных финансов."""

__version__ = "2.0.0"
