"""
Session state - unit mode, scenario comparison latch, slider drag tracking
and the capped snapshot history
"""

import pandas as pd
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Deque, List, Optional
import logging

from .schema import InputRecord, RiskField, Snapshot, UnitMode

logger = logging.getLogger(__name__)

MAX_SNAPSHOTS = 20

class SnapshotHistory:
    """FIFO ring buffer of snapshots; the oldest entry is evicted on overflow"""

    def __init__(self, capacity: int = MAX_SNAPSHOTS):
        self.capacity = capacity
        self._snapshots: Deque[Snapshot] = deque(maxlen=capacity)

    def append(self, risk_pct: float, si_values: InputRecord,
               timestamp: Optional[datetime] = None) -> Snapshot:
        snapshot = Snapshot(
            timestamp=timestamp or datetime.now(),
            risk_pct=risk_pct,
            si_values=si_values
        )

        if len(self._snapshots) == self.capacity:
            logger.debug(f"Snapshot history full, evicting entry from {self._snapshots[0].timestamp}")
        self._snapshots.append(snapshot)

        return snapshot

    def clear(self) -> None:
        self._snapshots.clear()

    def to_list(self) -> List[Snapshot]:
        return list(self._snapshots)

    def to_frame(self) -> pd.DataFrame:
        """Tabular view of the history, one row per snapshot"""
        rows = []
        for i, snapshot in enumerate(self._snapshots):
            row = {"index": i + 1, "timestamp": snapshot.timestamp, "risk_pct": snapshot.risk_pct}
            row.update({f.value: snapshot.si_values.get(f) for f in RiskField})
            rows.append(row)

        columns = ["index", "timestamp", "risk_pct"] + [f.value for f in RiskField]
        return pd.DataFrame(rows, columns=columns)

    def __len__(self) -> int:
        return len(self._snapshots)

    def __iter__(self):
        return iter(self._snapshots)

    def __getitem__(self, index: int) -> Snapshot:
        return self._snapshots[index]

@dataclass
class SessionState:
    """Interaction state mutated only by explicit user actions"""
    unit_mode: UnitMode = UnitMode.US
    baseline_risk: Optional[float] = None
    comparing: bool = False
    active_field: Optional[RiskField] = None
    drag_start_risk: Optional[float] = None
    history: SnapshotHistory = field(default_factory=SnapshotHistory)

    @property
    def is_metric(self) -> bool:
        return self.unit_mode == UnitMode.SI

    def set_unit_mode(self, mode: UnitMode) -> bool:
        """Returns True when the mode actually changed"""
        if mode == self.unit_mode:
            return False
        logger.info(f"Unit mode {self.unit_mode.value} -> {mode.value}")
        self.unit_mode = mode
        return True

    def toggle_units(self) -> UnitMode:
        self.set_unit_mode(UnitMode.US if self.is_metric else UnitMode.SI)
        return self.unit_mode

    def start_drag(self, field: RiskField, current_risk: float) -> None:
        self.active_field = field
        self.drag_start_risk = current_risk

    def end_drag(self) -> None:
        self.active_field = None
        self.drag_start_risk = None

    def drag_delta(self, current_risk: float) -> Optional[float]:
        """Change since the drag started, in percentage points"""
        if self.active_field is None or self.drag_start_risk is None:
            return None
        return current_risk - self.drag_start_risk

    def toggle_comparison(self, current_risk: float) -> bool:
        """
        Latch the current risk as the comparison baseline, or release it.
        Returns the new comparing flag.
        """
        self.comparing = not self.comparing
        if self.comparing:
            self.baseline_risk = current_risk
            logger.info(f"Scenario comparison started at {current_risk:.2f}%")
        else:
            self.baseline_risk = None
            logger.info("Scenario comparison stopped")
        return self.comparing

    def comparison_delta(self, current_risk: float) -> Optional[float]:
        if not self.comparing or self.baseline_risk is None:
            return None
        return current_risk - self.baseline_risk

    def record_snapshot(self, risk_pct: float, si_values: InputRecord,
                        timestamp: Optional[datetime] = None) -> Snapshot:
        snapshot = self.history.append(risk_pct, si_values, timestamp)
        logger.info(f"Snapshot #{len(self.history)} recorded at {risk_pct:.2f}%")
        return snapshot

    def reset(self) -> None:
        """Back to US units with an empty history; the comparison latch is kept"""
        self.unit_mode = UnitMode.US
        self.end_drag()
        self.history.clear()
        logger.info("Session reset")
