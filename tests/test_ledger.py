"""Tests for the ingredient ledger."""
from __future__ import annotations

import threading

import pytest

from bakeoff_errors import ResourceInvariantViolation
from bakeoff_types import Ingredient
from kitchen.ledger import IngredientLedger

from conftest import start_thread, wait_until


def test_starts_fully_stocked():
    ledger = IngredientLedger()
    assert ledger.is_fully_stocked()
    assert set(ledger.snapshot()) == {i.value for i in Ingredient}
    assert all(units == 1 for units in ledger.snapshot().values())


def test_reserve_and_release():
    ledger = IngredientLedger()
    assert ledger.try_reserve(Ingredient.FLOUR)
    assert ledger.available(Ingredient.FLOUR) == 0
    assert not ledger.is_fully_stocked()
    ledger.release(Ingredient.FLOUR)
    assert ledger.available(Ingredient.FLOUR) == 1


def test_zero_timeout_does_not_wait():
    ledger = IngredientLedger()
    ledger.try_reserve(Ingredient.MILK)
    assert ledger.try_reserve(Ingredient.MILK, timeout=0) is False
    assert ledger.available(Ingredient.MILK) == 0


def test_release_without_reservation_is_violation():
    ledger = IngredientLedger()
    with pytest.raises(ResourceInvariantViolation):
        ledger.release(Ingredient.SUGAR)
    assert ledger.available(Ingredient.SUGAR) == 1


def test_blocked_reservation_wakes_on_release():
    ledger = IngredientLedger()
    ledger.try_reserve(Ingredient.EGG)
    reserved = threading.Event()

    def reserve():
        ledger.try_reserve(Ingredient.EGG)
        reserved.set()

    thread = start_thread(reserve)
    assert not reserved.wait(0.1)
    ledger.release(Ingredient.EGG)
    assert reserved.wait(5)
    thread.join(5)
    assert ledger.available(Ingredient.EGG) == 0


def test_other_ingredients_unaffected_by_waiter():
    ledger = IngredientLedger()
    ledger.try_reserve(Ingredient.BUTTER)
    thread = start_thread(ledger.try_reserve, Ingredient.BUTTER)
    assert ledger.try_reserve(Ingredient.SALT, timeout=0)
    ledger.release(Ingredient.BUTTER)
    thread.join(5)
    assert not thread.is_alive()


def test_multiple_units():
    ledger = IngredientLedger(initial_units=2)
    assert ledger.try_reserve(Ingredient.YEAST)
    assert ledger.try_reserve(Ingredient.YEAST)
    assert not ledger.try_reserve(Ingredient.YEAST, timeout=0)
    ledger.release(Ingredient.YEAST)
    ledger.release(Ingredient.YEAST)
    with pytest.raises(ResourceInvariantViolation):
        ledger.release(Ingredient.YEAST)


def test_counter_never_negative_under_contention():
    ledger = IngredientLedger()
    seen = []
    lock = threading.Lock()

    def worker():
        for _ in range(200):
            ledger.try_reserve(Ingredient.CINNAMON)
            with lock:
                seen.append(ledger.available(Ingredient.CINNAMON))
            ledger.release(Ingredient.CINNAMON)

    threads = [start_thread(worker) for _ in range(6)]
    for thread in threads:
        thread.join(10)
    assert all(units == 0 for units in seen)
    assert ledger.available(Ingredient.CINNAMON) == 1


def test_close_fails_waiters():
    ledger = IngredientLedger()
    ledger.try_reserve(Ingredient.FLOUR)
    errors = []

    def reserve():
        try:
            ledger.try_reserve(Ingredient.FLOUR)
        except ResourceInvariantViolation as e:
            errors.append(e)

    thread = start_thread(reserve)
    ledger.close()
    thread.join(5)
    assert wait_until(lambda: len(errors) == 1)


def test_rejects_empty_stock():
    with pytest.raises(ValueError):
        IngredientLedger(initial_units=0)
