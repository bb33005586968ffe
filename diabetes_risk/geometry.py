"""
Chart geometry - radar (configural) polygon and snapshot timeline coordinates.
Only coordinates are produced here; drawing belongs to the renderer.
"""

import numpy as np
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from .schema import (InputRecord, ModelConfig, RiskField, RadarPoint, Snapshot,
                    TimelineLayout, TimelinePoint)

logger = logging.getLogger(__name__)

RADAR_AXES = (
    RiskField.FAST_GLU,
    RiskField.SBP,
    RiskField.CHOL_TRI,
    RiskField.WAIST,
    RiskField.CHOL_HDL,
    RiskField.AGE,
)

# Higher is protective; inverted so a larger radius always means worse
INVERTED_AXES = frozenset({RiskField.CHOL_HDL})

class RadarGeometry:
    """Maps SI values onto a fixed six-axis radar chart"""

    def __init__(self, config: Optional[ModelConfig] = None, center: float = 150.0,
                 radius: float = 115.0, label_offset: float = 18.0,
                 axes: Sequence[RiskField] = RADAR_AXES):
        self.config = config or ModelConfig()
        self.center = center
        self.radius = radius
        self.label_offset = label_offset
        self.axes = tuple(axes)

        # Population polygon is computed once and reused as the "ideal" shape
        self.ideal_ratios = self.axis_ratios(self.config.mean_record())
        self.ideal_polygon = self._polygon_from_ratios(self.ideal_ratios)

    @property
    def population_polygon(self) -> List[Tuple[float, float]]:
        """Identical to the ideal polygon in this model"""
        return self.ideal_polygon

    def axis_ratio(self, field: RiskField, si_value: float) -> float:
        """Position of a value along its axis, clamped to [0, 1]"""
        bounds = self.config.ranges[field].si
        ratio = (si_value - bounds.min) / (bounds.max - bounds.min)
        ratio = min(max(ratio, 0.0), 1.0)
        if field in INVERTED_AXES:
            ratio = 1.0 - ratio
        return ratio

    def axis_ratios(self, si_record: InputRecord) -> Dict[RiskField, float]:
        return {field: self.axis_ratio(field, si_record.get(field)) for field in self.axes}

    def polar_to_xy(self, index: int, r: float) -> Tuple[float, float]:
        """Equal angular spacing starting at the top (-90 degrees)"""
        angle = (2 * np.pi * index / len(self.axes)) - np.pi / 2
        return (float(self.center + r * np.cos(angle)),
                float(self.center + r * np.sin(angle)))

    def _polygon_from_ratios(self, ratios: Dict[RiskField, float]) -> List[Tuple[float, float]]:
        return [self.polar_to_xy(i, self.radius * ratios[field])
                for i, field in enumerate(self.axes)]

    def patient_points(self, si_record: InputRecord,
                       elevated: Sequence[RiskField] = ()) -> List[RadarPoint]:
        """Per-axis dots for the current patient, flagged when elevated"""
        points = []
        for i, field in enumerate(self.axes):
            ratio = self.axis_ratio(field, si_record.get(field))
            x, y = self.polar_to_xy(i, self.radius * ratio)
            points.append(RadarPoint(field=field, ratio=ratio, x=x, y=y,
                                     elevated=field in elevated))
        return points

    def patient_polygon(self, si_record: InputRecord) -> List[Tuple[float, float]]:
        return self._polygon_from_ratios(self.axis_ratios(si_record))

    def rings(self, fractions: Sequence[float] = (0.2, 0.4, 0.6, 0.8, 1.0)) -> List[List[Tuple[float, float]]]:
        """Concentric grid polygons"""
        return [[self.polar_to_xy(i, self.radius * frac) for i in range(len(self.axes))]
                for frac in fractions]

    def spokes(self) -> List[Tuple[float, float, float, float]]:
        """Axis lines from the centre to the outer ring"""
        spokes = []
        for i in range(len(self.axes)):
            x, y = self.polar_to_xy(i, self.radius)
            spokes.append((self.center, self.center, x, y))
        return spokes

    def label_anchors(self) -> List[Tuple[RiskField, str, float, float]]:
        anchors = []
        for i, field in enumerate(self.axes):
            x, y = self.polar_to_xy(i, self.radius + self.label_offset)
            anchors.append((field, self.config.radar_labels.get(field, field.value), x, y))
        return anchors

class TimelineGeometry:
    """Line/area chart coordinates for the bounded snapshot history"""

    EMPTY_MESSAGE = 'No snapshots yet. Click "Save Snapshot" to track changes over time.'

    def __init__(self, height: float = 80.0, default_width: float = 250.0,
                 padding: Tuple[float, float, float, float] = (10.0, 12.0, 16.0, 12.0),
                 min_max_y: float = 50.0, threshold_pct: float = 10.0, tick_every: int = 5):
        self.height = height
        self.default_width = default_width
        self.pad_top, self.pad_right, self.pad_bottom, self.pad_left = padding
        self.min_max_y = min_max_y
        self.threshold_pct = threshold_pct
        self.tick_every = tick_every

    def layout(self, snapshots: Sequence[Snapshot], width: Optional[float] = None) -> TimelineLayout:
        """
        Scale the history into plot coordinates.
        The y scale always reaches at least 50% so the 10% reference line stays
        visible and no point clips. A single point is centred with no line.
        """
        width = width or self.default_width

        if not snapshots:
            return TimelineLayout(width=width, height=self.height, empty=True,
                                  message=self.EMPTY_MESSAGE, max_y=self.min_max_y)

        n = len(snapshots)
        plot_w = width - self.pad_left - self.pad_right
        plot_h = self.height - self.pad_top - self.pad_bottom
        max_y = max(self.min_max_y, max(s.risk_pct for s in snapshots))

        def x_scale(i: int) -> float:
            if n == 1:
                return self.pad_left + plot_w / 2
            return self.pad_left + (i / (n - 1)) * plot_w

        def y_scale(v: float) -> float:
            return self.pad_top + plot_h - (v / max_y) * plot_h

        points = []
        for i, snapshot in enumerate(snapshots):
            tick = None
            if i == 0 or i == n - 1 or i % self.tick_every == 0:
                tick = str(i + 1)
            points.append(TimelinePoint(index=i, risk_pct=snapshot.risk_pct,
                                        x=x_scale(i), y=y_scale(snapshot.risk_pct),
                                        tick_label=tick))

        line = []
        area = []
        if n > 1:
            line = [(p.x, p.y) for p in points]
            area = line + [(x_scale(n - 1), y_scale(0)), (x_scale(0), y_scale(0))]

        threshold_y = y_scale(self.threshold_pct)

        return TimelineLayout(
            width=width,
            height=self.height,
            empty=False,
            max_y=max_y,
            threshold_y=threshold_y,
            threshold_line=(self.pad_left, threshold_y, width - self.pad_right, threshold_y),
            points=points,
            line=line,
            area=area
        )
