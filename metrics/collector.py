"""
Metrics Collector for the bake-off
Records kitchen lifecycle events and summarizes them with pandas
"""

import json
import threading
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd
import logging

from bakeoff_types import EventKind
from kitchen.engine import KitchenEvent

logger = logging.getLogger(__name__)

EVENT_COLUMNS = ["timestamp", "worker_id", "kind", "recipe", "detail"]


class MetricsCollector:
    """Collect and analyze lifecycle events from one run.

    Register ``collector.record`` as a kitchen event handler. Bakers call it
    from their own threads.
    """

    def __init__(self, output_dir: Optional[Union[str, Path]] = None):
        self.output_dir = Path(output_dir) if output_dir else None
        self.events: List[KitchenEvent] = []
        self._lock = threading.Lock()

    def record(self, event: KitchenEvent):
        with self._lock:
            self.events.append(event)

    __call__ = record

    def events_for(self, worker_id: Optional[int] = None, kind: Optional[EventKind] = None) -> List[KitchenEvent]:
        with self._lock:
            events = list(self.events)
        return [
            e for e in events
            if (worker_id is None or e.worker_id == worker_id) and (kind is None or e.kind == kind)
        ]

    def count(self, kind: EventKind, worker_id: Optional[int] = None) -> int:
        return len(self.events_for(worker_id, kind))

    def kind_counts(self, worker_id: Optional[int] = None) -> Counter:
        return Counter(e.kind for e in self.events_for(worker_id))

    def to_dataframe(self) -> pd.DataFrame:
        """One row per event"""
        with self._lock:
            rows = [
                {
                    "timestamp": e.timestamp,
                    "worker_id": e.worker_id,
                    "kind": e.kind.value,
                    "recipe": e.recipe,
                    "detail": e.detail
                }
                for e in self.events
            ]
        return pd.DataFrame(rows, columns=EVENT_COLUMNS)

    def summarize(self) -> pd.DataFrame:
        """Event counts per baker, one column per event kind"""
        df = self.to_dataframe()
        columns = [kind.value for kind in EventKind]
        if df.empty:
            return pd.DataFrame(columns=columns)
        summary = df.groupby(["worker_id", "kind"]).size().unstack(fill_value=0)
        return summary.reindex(columns=columns, fill_value=0)

    def summary_dict(self) -> Dict[str, Any]:
        summary = self.summarize()
        return {
            "total_events": len(self.events_for()),
            "preemptions": self.count(EventKind.PREEMPTION_FIRED),
            "aborted_attempts": self.count(EventKind.ATTEMPT_ABORTED),
            "recipes_completed": self.count(EventKind.RECIPE_COMPLETED),
            "per_worker": {
                int(worker_id): {kind: int(n) for kind, n in row.items()}
                for worker_id, row in summary.iterrows()
            }
        }

    def export(self, path: Union[str, Path], format: str = "json") -> Path:
        """Write the event log as JSON or CSV"""
        path = Path(path)
        if not path.is_absolute() and self.output_dir is not None:
            path = self.output_dir / path
        path.parent.mkdir(parents=True, exist_ok=True)

        if format == "json":
            with open(path, 'w') as f:
                json.dump([e.to_dict() for e in self.events_for()], f, indent=2, default=str)
        elif format == "csv":
            self.to_dataframe().to_csv(path, index=False)
        else:
            raise ValueError(f"Unsupported export format: {format}")

        logger.info(f"Exported {len(self.events_for())} events to {path}")
        return path
