"""
Тесты целей накоплений.
"""

from decimal import Decimal

import pytest
from hypothesis import given, settings, strategies as st
from pydantic import ValidationError as PydanticValidationError

from expense_tracker.models import SavingsGoal, SavingsGoalCreate, SavingsGoalUpdate
from expense_tracker.services.savings_service import (
    create_savings_goal,
    get_savings_goals,
    update_savings_goal,
    delete_savings_goal,
)
from expense_tracker.utils.exceptions import NotFoundError, ValidationError
from property_generators import valid_amounts


class TestSavingsGoalProperties:

    @given(
        target=valid_amounts(),
        saved=st.decimals(min_value=Decimal('0'), max_value=Decimal('2000000'), places=2),
    )
    @settings(max_examples=100, deadline=None)
    def test_property_progress_is_bounded(self, target, saved):
        """
        Property 10: Прогресс цели в диапазоне 0-100, цель выполнена при saved >= target.
        Feature: Savings
        """
        goal = SavingsGoal(
            id="g", user_id="user-1", goal_name="Отпуск",
            target_amount=target, saved_amount=saved,
            created_at="2024-01-01T00:00:00", updated_at="2024-01-01T00:00:00",
        )

        assert Decimal('0') <= goal.progress_percent <= Decimal('100')
        assert goal.is_completed == (saved >= target)


class TestSavingsService:

    def test_create_and_progress(self, db_session):
        goal = create_savings_goal(db_session, SavingsGoalCreate(
            user_id="user-1", goal_name="Ноутбук", target_amount=Decimal("120000"), saved_amount=Decimal("30000")
        ))

        read = SavingsGoal.model_validate(goal)
        assert read.progress_percent == Decimal("25.00")
        assert read.is_completed is False
        assert read.model_dump()["progress_percent"] == Decimal("25.00")

    def test_saved_amount_defaults_to_zero(self, db_session):
        goal = create_savings_goal(db_session, SavingsGoalCreate(
            user_id="user-1", goal_name="Подушка", target_amount=Decimal("50000")
        ))

        assert goal.saved_amount == Decimal("0")

    def test_negative_saved_amount_rejected(self):
        with pytest.raises(PydanticValidationError):
            SavingsGoalCreate(user_id="user-1", goal_name="Х", target_amount=Decimal("10"), saved_amount=Decimal("-1"))

    def test_update_and_complete(self, db_session):
        goal = create_savings_goal(db_session, SavingsGoalCreate(
            user_id="user-1", goal_name="Ноутбук", target_amount=Decimal("1000")
        ))

        updated = update_savings_goal(db_session, "user-1", goal.id, SavingsGoalUpdate(saved_amount=Decimal("1500")))

        read = SavingsGoal.model_validate(updated)
        assert read.progress_percent == Decimal("100.00")
        assert read.is_completed is True

    def test_update_with_null_rejected(self, db_session):
        goal = create_savings_goal(db_session, SavingsGoalCreate(
            user_id="user-1", goal_name="Ноутбук", target_amount=Decimal("1000")
        ))

        with pytest.raises(ValidationError):
            update_savings_goal(db_session, "user-1", goal.id, SavingsGoalUpdate(target_amount=None))

    def test_list_and_delete_isolated_by_user(self, db_session):
        goal = create_savings_goal(db_session, SavingsGoalCreate(
            user_id="user-1", goal_name="Машина", target_amount=Decimal("900000")
        ))

        assert get_savings_goals(db_session, "user-2") == []
        with pytest.raises(NotFoundError):
            delete_savings_goal(db_session, "user-2", goal.id)

        assert delete_savings_goal(db_session, "user-1", goal.id) is True
        assert get_savings_goals(db_session, "user-1") == []
