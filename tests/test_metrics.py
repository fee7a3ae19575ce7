"""Tests for the metrics collector."""
from __future__ import annotations

import json
import threading

import pandas as pd
import pytest

from bakeoff_types import EventKind
from kitchen import KitchenEvent
from metrics import EVENT_COLUMNS, MetricsCollector


def sample_collector():
    collector = MetricsCollector()
    collector(KitchenEvent(0, EventKind.ATTEMPT_STARTED, "cookies"))
    collector(KitchenEvent(0, EventKind.RECIPE_COMPLETED, "cookies"))
    collector(KitchenEvent(1, EventKind.ATTEMPT_STARTED, "cookies"))
    collector(KitchenEvent(1, EventKind.PREEMPTION_FIRED, "cookies", {"phase": "acquiring"}))
    collector(KitchenEvent(1, EventKind.ATTEMPT_ABORTED, "cookies"))
    return collector


def test_counts_and_filters():
    collector = sample_collector()
    assert collector.count(EventKind.ATTEMPT_STARTED) == 2
    assert collector.count(EventKind.ATTEMPT_STARTED, worker_id=1) == 1
    assert collector.kind_counts(0)[EventKind.RECIPE_COMPLETED] == 1
    assert [e.kind for e in collector.events_for(1)][-1] == EventKind.ATTEMPT_ABORTED


def test_dataframe_and_summary():
    collector = sample_collector()
    df = collector.to_dataframe()
    assert list(df.columns) == EVENT_COLUMNS
    assert len(df) == 5

    summary = collector.summarize()
    assert summary.loc[0, "recipe_completed"] == 1
    assert summary.loc[1, "preemption_fired"] == 1
    assert summary.loc[1, "recipe_completed"] == 0

    data = collector.summary_dict()
    assert data["preemptions"] == 1
    assert data["aborted_attempts"] == 1
    assert data["per_worker"][1]["attempt_aborted"] == 1


def test_empty_summary():
    summary = MetricsCollector().summarize()
    assert summary.empty
    assert "recipe_completed" in summary.columns


def test_export_json_and_csv(tmp_path):
    collector = sample_collector()
    json_path = collector.export(tmp_path / "events.json")
    events = json.loads(json_path.read_text())
    assert events[3]["kind"] == "preemption_fired"
    assert events[3]["detail"] == {"phase": "acquiring"}

    csv_path = collector.export(tmp_path / "events.csv", format="csv")
    assert len(pd.read_csv(csv_path)) == 5

    with pytest.raises(ValueError):
        collector.export(tmp_path / "events.xml", format="xml")


def test_summary_total_with_concurrent_recorders():
    collector = MetricsCollector()

    def record(worker_id):
        for _ in range(200):
            collector(KitchenEvent(worker_id, EventKind.INGREDIENT_GATHERED, "cookies"))

    threads = [threading.Thread(target=record, args=(worker_id,)) for worker_id in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    summary = collector.summary_dict()
    assert summary["total_events"] == 800
    assert summary["per_worker"][3]["ingredient_gathered"] == 200
