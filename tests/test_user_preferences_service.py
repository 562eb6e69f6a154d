"""
Тесты сервиса предпочтений пользователя и первичной настройки.
"""

import pytest
from hypothesis import given, settings, strategies as st
from pydantic import ValidationError as PydanticValidationError

from expense_tracker.models import UserPreferences, UserPreferencesDB, UserPreferencesUpdate
from expense_tracker.models.enums import BudgetStyle
from expense_tracker.services.user_preferences_service import (
    get_user_preferences,
    update_user_preferences,
    get_setup_progress,
    reset_setup,
    DEFAULT_PREFERENCES,
)
from expense_tracker.utils.exceptions import ValidationError


class TestUserPreferencesService:

    def test_defaults_for_new_user_are_not_stored(self, db_session):
        preferences = get_user_preferences(db_session, "user-1")

        assert preferences.currency == "RUB"
        assert preferences.budget_style == BudgetStyle.BALANCED
        assert preferences.selected_categories == DEFAULT_PREFERENCES["selected_categories"]
        assert db_session.query(UserPreferencesDB).count() == 0

        read = UserPreferences.model_validate(preferences)
        assert read.setup_completed is False
        assert read.created_at is None

    def test_first_update_creates_record_with_defaults(self, db_session):
        updated = update_user_preferences(
            db_session, "user-1", UserPreferencesUpdate(display_name=" Анна ", currency="eur")
        )

        assert updated.id is not None
        assert updated.display_name == "Анна"
        assert updated.currency == "EUR"
        assert updated.timezone == "Europe/Moscow"
        assert updated.default_savings_percentage == 20
        assert UserPreferences.model_validate(updated).setup_completed is True

    def test_partial_update_keeps_other_fields(self, db_session):
        update_user_preferences(db_session, "user-1", UserPreferencesUpdate(display_name="Анна"))
        updated = update_user_preferences(
            db_session, "user-1", UserPreferencesUpdate(budget_style=BudgetStyle.CONSERVATIVE)
        )

        assert updated.display_name == "Анна"
        assert updated.budget_style == BudgetStyle.CONSERVATIVE
        assert db_session.query(UserPreferencesDB).count() == 1

    def test_users_are_isolated(self, db_session):
        update_user_preferences(db_session, "user-1", UserPreferencesUpdate(currency="USD"))

        assert get_user_preferences(db_session, "user-2").currency == "RUB"

    def test_null_for_required_field_rejected(self, db_session):
        with pytest.raises(ValidationError):
            update_user_preferences(db_session, "user-1", UserPreferencesUpdate(currency=None))

    def test_setup_progress(self, db_session):
        assert get_setup_progress(db_session, "user-1") == {
            "completed": False, "steps_completed": 4, "total_steps": 5
        }

        update_user_preferences(db_session, "user-1", UserPreferencesUpdate(display_name="Анна"))
        assert get_setup_progress(db_session, "user-1") == {
            "completed": True, "steps_completed": 5, "total_steps": 5
        }

        update_user_preferences(db_session, "user-1", UserPreferencesUpdate(selected_categories=[" ", ""]))
        assert get_setup_progress(db_session, "user-1")["steps_completed"] == 4

    def test_reset_setup_clears_name_and_email_only(self, db_session):
        update_user_preferences(db_session, "user-1", UserPreferencesUpdate(
            display_name="Анна", email_notifications=True, currency="USD"
        ))

        reset = reset_setup(db_session, "user-1")

        assert reset.display_name is None
        assert reset.email_notifications is False
        assert reset.currency == "USD"
        assert get_setup_progress(db_session, "user-1")["completed"] is False

    def test_reset_without_record_writes_nothing(self, db_session):
        reset = reset_setup(db_session, "user-1")

        assert reset.display_name is None
        assert db_session.query(UserPreferencesDB).count() == 0


class TestUserPreferencesValidation:

    @pytest.mark.parametrize("field,value", [
        ("currency", "РУБ"),
        ("currency", "EURO"),
        ("timezone", "Mars/Olympus"),
        ("default_savings_percentage", 101),
        ("default_savings_percentage", -1),
        ("budget_style", "reckless"),
    ])
    def test_invalid_values_rejected(self, field, value):
        with pytest.raises(PydanticValidationError):
            UserPreferencesUpdate(**{field: value})

    def test_categories_are_stripped_and_deduplicated(self):
        data = UserPreferencesUpdate(selected_categories=[" Еда", "Еда", "", "Транспорт "])

        assert data.selected_categories == ["Еда", "Транспорт"]

    @given(percentage=st.integers(min_value=0, max_value=100))
    @settings(max_examples=50, deadline=None)
    def test_property_savings_percentage_in_range_accepted(self, percentage):
        """
        Property 19: Любой процент накоплений от 0 до 100 принимается.
        Feature: User Preferences
        """
        assert UserPreferencesUpdate(default_savings_percentage=percentage).default_savings_percentage == percentage
