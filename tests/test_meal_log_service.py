"""Tests for meal log service and its aggregate refresh."""

import logging
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from nutrition_ledger.domain.errors import InvalidDate, MealNotFound
from nutrition_ledger.domain.meals import LineItemChanges
from nutrition_ledger.domain.nutrients import MealSlot
from nutrition_ledger.services.calendar import anchor
from nutrition_ledger.services.mutations import MutationHook
from tests.conftest import new_item, values


def test_add_items_appends_and_refreshes_day(
    meal_service, meal_repository, aggregate_repository, user_id
) -> None:
    first = meal_service.add_items(
        user_id, "2024-05-01", MealSlot.LUNCH, [new_item(300), new_item(150)]
    )
    second = meal_service.add_items(
        user_id, "2024-05-01", MealSlot.LUNCH, [new_item(50)]
    )

    assert first.meal_id == second.meal_id
    assert first.affected_days == [date(2024, 5, 1)]
    assert not second.stats_stale
    positions = [item.position for item in meal_repository.list_items(first.meal_id)]
    assert positions == [1, 2, 3]
    assert aggregate_repository.rows[(user_id, anchor("2024-05-01"))].kcal == 500


def test_add_items_rejects_bad_date(meal_service, user_id) -> None:
    with pytest.raises(InvalidDate):
        meal_service.add_items(user_id, "05/01/2024", MealSlot.LUNCH, [new_item(1)])


def test_get_day_orders_slots_and_totals_kcal(meal_service, user_id) -> None:
    meal_service.add_items(user_id, "2024-05-01", MealSlot.DINNER, [new_item(600)])
    meal_service.add_items(user_id, "2024-05-01", MealSlot.BREAKFAST, [new_item(250)])

    day = meal_service.get_day(user_id, "2024-05-01")

    assert [detail.meal.slot for detail in day.meals] == [
        MealSlot.BREAKFAST,
        MealSlot.DINNER,
    ]
    assert day.total_kcal == 850


def test_update_item_refreshes_aggregate(
    meal_service, meal_repository, aggregate_repository, user_id
) -> None:
    result = meal_service.add_items(
        user_id, "2024-05-01", MealSlot.LUNCH, [new_item(300, protein="10")]
    )
    item = meal_repository.list_items(result.meal_id)[0]

    meal_service.update_item(
        user_id,
        item.id,
        LineItemChanges(quantity=Decimal(200), values=values(600, protein="20")),
    )

    row = aggregate_repository.rows[(user_id, anchor("2024-05-01"))]
    assert row.kcal == 600
    assert row.protein == Decimal(20)


def test_update_item_keeps_nutrients_not_sent(
    meal_service, meal_repository, aggregate_repository, user_id
) -> None:
    result = meal_service.add_items(
        user_id,
        "2024-05-01",
        MealSlot.LUNCH,
        [new_item(300, protein="20", salt="1.5")],
    )
    item = meal_repository.list_items(result.meal_id)[0]

    meal_service.update_item(
        user_id, item.id, LineItemChanges(nutrients={"kcal": 350, "salt": None})
    )

    updated = meal_repository.get_item(item.id)
    assert updated.values == values(350, protein="20")
    row = aggregate_repository.rows[(user_id, anchor("2024-05-01"))]
    assert row.kcal == 350
    assert row.protein == Decimal(20)
    assert row.salt == Decimal(0)


def test_delete_last_item_removes_aggregate(
    meal_service, meal_repository, aggregate_repository, user_id
) -> None:
    result = meal_service.add_items(
        user_id, "2024-05-01", MealSlot.SNACK, [new_item(120)]
    )
    item = meal_repository.list_items(result.meal_id)[0]

    meal_service.delete_item(user_id, item.id)

    assert (user_id, anchor("2024-05-01")) not in aggregate_repository.rows


def test_delete_meal_refreshes_day(
    meal_service, aggregate_repository, user_id
) -> None:
    lunch = meal_service.add_items(
        user_id, "2024-05-01", MealSlot.LUNCH, [new_item(400)]
    )
    meal_service.add_items(user_id, "2024-05-01", MealSlot.DINNER, [new_item(700)])

    result = meal_service.delete_meal(user_id, lunch.meal_id)

    assert result.meal_id is None
    assert aggregate_repository.rows[(user_id, anchor("2024-05-01"))].kcal == 700


def test_move_meal_refreshes_both_days(
    meal_service, meal_repository, aggregate_repository, user_id
) -> None:
    result = meal_service.add_items(
        user_id, "2024-05-01", MealSlot.LUNCH, [new_item(400)]
    )

    moved = meal_service.move_meal(
        user_id, result.meal_id, "2024-05-02", MealSlot.DINNER
    )

    assert moved.meal_id == result.meal_id
    assert moved.affected_days == [date(2024, 5, 1), date(2024, 5, 2)]
    assert (user_id, anchor("2024-05-01")) not in aggregate_repository.rows
    assert aggregate_repository.rows[(user_id, anchor("2024-05-02"))].kcal == 400
    assert meal_repository.get_meal(result.meal_id).slot == MealSlot.DINNER


def test_move_meal_into_occupied_slot_merges(
    meal_service, meal_repository, aggregate_repository, user_id
) -> None:
    source = meal_service.add_items(
        user_id, "2024-05-01", MealSlot.LUNCH, [new_item(400), new_item(100)]
    )
    target = meal_service.add_items(
        user_id, "2024-05-02", MealSlot.LUNCH, [new_item(250)]
    )

    result = meal_service.move_meal(
        user_id, source.meal_id, "2024-05-02", MealSlot.LUNCH
    )

    assert result.meal_id == target.meal_id
    assert meal_repository.get_meal(source.meal_id) is None
    items = meal_repository.list_items(target.meal_id)
    assert [item.position for item in items] == [1, 2, 3]
    assert aggregate_repository.rows[(user_id, anchor("2024-05-02"))].kcal == 750
    assert (user_id, anchor("2024-05-01")) not in aggregate_repository.rows


def test_meals_of_other_users_are_not_found(
    meal_service, meal_repository, user_id
) -> None:
    result = meal_service.add_items(
        user_id, "2024-05-01", MealSlot.LUNCH, [new_item(400)]
    )
    item = meal_repository.list_items(result.meal_id)[0]
    stranger = uuid4()

    with pytest.raises(MealNotFound):
        meal_service.delete_meal(stranger, result.meal_id)
    with pytest.raises(MealNotFound):
        meal_service.delete_item(stranger, item.id)
    with pytest.raises(MealNotFound):
        meal_service.get_meal(stranger, result.meal_id)
    assert meal_repository.get_meal(result.meal_id) is not None


def test_refresh_failure_keeps_items_and_reports_stale(
    meal_service, meal_repository, aggregate_repository, user_id, caplog, monkeypatch
) -> None:
    monkeypatch.setattr(logging.getLogger("nutrition_ledger"), "propagate", True)
    aggregate_repository.failing.add("upsert_aggregate")

    with caplog.at_level(logging.ERROR, logger="nutrition_ledger"):
        result = meal_service.add_items(
            user_id, "2024-05-01", MealSlot.LUNCH, [new_item(400)]
        )

    assert result.stats_stale
    assert result.stale_days == [date(2024, 5, 1)]
    assert len(meal_repository.list_items(result.meal_id)) == 1
    assert "Failed to refresh daily aggregate" in caplog.text


def test_read_through_repairs_stale_day(
    meal_service, aggregate_repository, aggregate_cache, user_id
) -> None:
    aggregate_repository.failing.add("upsert_aggregate")
    meal_service.add_items(user_id, "2024-05-01", MealSlot.LUNCH, [new_item(400)])
    aggregate_repository.failing.clear()

    assert aggregate_cache.read(user_id, anchor("2024-05-01")).kcal == 400


def test_hook_recomputes_each_day_once(
    meal_repository, aggregate_repository, aggregate_cache, user_id
) -> None:
    hook = MutationHook(aggregate_cache)
    day = anchor("2024-05-01")

    outcome = hook.after_commit(user_id, [day, day, anchor("2024-05-02")])

    assert outcome.refreshed == [date(2024, 5, 1), date(2024, 5, 2)]
    assert outcome.stale == []
    assert meal_repository.ledger_reads == 2
