"""Shared fixtures: fast kitchens with no mixing or baking delay."""
from __future__ import annotations

import random
import threading
import time

import pytest

from bakeoff_types import KitchenArea
from config import KitchenSettings, PreemptionSettings, Settings
from kitchen import Kitchen
from metrics import MetricsCollector


def make_settings(preemption: dict | None = None, **overrides) -> Settings:
    kitchen = dict(mixing_seconds=0.0, baking_seconds=0.0, record_history=True)
    kitchen.update(overrides.pop("kitchen", {}))
    return Settings(
        seed=overrides.pop("seed", 1234),
        kitchen=KitchenSettings(**kitchen),
        preemption=PreemptionSettings(**(preemption or {"enabled": False})),
        **overrides,
    )


def wait_until(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def start_thread(target, *args) -> threading.Thread:
    thread = threading.Thread(target=target, args=args, daemon=True)
    thread.start()
    return thread


def assert_exclusive_history(history):
    """Replay area transitions: nobody takes a held area, only the holder releases it."""
    holders = {area: None for area in KitchenArea}
    for transition in history:
        if transition.acquired:
            assert holders[transition.area] is None, transition
            holders[transition.area] = transition.worker_id
        else:
            assert holders[transition.area] == transition.worker_id, transition
            holders[transition.area] = None
    assert all(holder is None for holder in holders.values())


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def kitchen(settings):
    return Kitchen(4, settings=settings, rng=random.Random(1))


@pytest.fixture
def collector(kitchen):
    collector = MetricsCollector()
    kitchen.register_event_handler(collector)
    return collector
