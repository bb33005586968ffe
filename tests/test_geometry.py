#!/usr/bin/env python3
"""
Unit tests for radar and timeline chart geometry
"""

import pytest
from datetime import datetime, timedelta
import sys
import os

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from diabetes_risk.schema import InputRecord, ModelConfig, RiskField, Snapshot, UnitMode
from diabetes_risk.geometry import RadarGeometry, TimelineGeometry, RADAR_AXES

def make_snapshots(risks):
    start = datetime(2026, 1, 1, 9, 0)
    si = ModelConfig().default_record(UnitMode.SI)
    return [Snapshot(timestamp=start + timedelta(minutes=i), risk_pct=r, si_values=si)
            for i, r in enumerate(risks)]

class TestRadarGeometry:
    """Test axis normalisation and polygon coordinates"""

    def setup_method(self):
        self.config = ModelConfig()
        self.radar = RadarGeometry(self.config)

    def test_axis_order(self):
        assert self.radar.axes == (RiskField.FAST_GLU, RiskField.SBP, RiskField.CHOL_TRI,
                                   RiskField.WAIST, RiskField.CHOL_HDL, RiskField.AGE)
        assert RADAR_AXES == self.radar.axes

    def test_axis_ratio_range_ends(self):
        assert self.radar.axis_ratio(RiskField.FAST_GLU, 2.8) == 0.0
        assert self.radar.axis_ratio(RiskField.FAST_GLU, 16.7) == 1.0
        assert self.radar.axis_ratio(RiskField.SBP, 150) == pytest.approx(0.5)

    def test_axis_ratio_clamped(self):
        assert self.radar.axis_ratio(RiskField.WAIST, 10) == 0.0
        assert self.radar.axis_ratio(RiskField.WAIST, 400) == 1.0

    def test_hdl_axis_inverted(self):
        """Low HDL is the risky end, so it maps to the outer ring"""
        assert self.radar.axis_ratio(RiskField.CHOL_HDL, 0.5) == 1.0
        assert self.radar.axis_ratio(RiskField.CHOL_HDL, 2.6) == 0.0
        assert self.radar.axis_ratio(RiskField.CHOL_HDL, 0.2) == 1.0

    def test_polar_to_xy(self):
        """First axis points straight up, the fourth straight down"""
        x0, y0 = self.radar.polar_to_xy(0, 100)
        assert x0 == pytest.approx(150.0)
        assert y0 == pytest.approx(50.0)

        x3, y3 = self.radar.polar_to_xy(3, 100)
        assert x3 == pytest.approx(150.0)
        assert y3 == pytest.approx(250.0)

        x1, y1 = self.radar.polar_to_xy(1, 100)
        assert x1 > 150 and y1 < 150

    def test_population_polygon_equals_ideal(self):
        """The population-mean patient reproduces the ideal polygon exactly"""
        mean = self.config.mean_record()
        assert self.radar.axis_ratios(mean) == self.radar.ideal_ratios
        assert self.radar.patient_polygon(mean) == self.radar.ideal_polygon
        assert self.radar.population_polygon == self.radar.ideal_polygon

    def test_ideal_ratios(self):
        assert self.radar.ideal_ratios[RiskField.CHOL_HDL] == pytest.approx(1 - (1.3 - 0.5) / 2.1)
        assert self.radar.ideal_ratios[RiskField.AGE] == pytest.approx((54 - 20) / 60)

    def test_patient_points_flag_elevated(self):
        record = self.config.mean_record().replace(fast_glu=8.0)
        points = self.radar.patient_points(record, [RiskField.FAST_GLU])

        assert [p.field for p in points] == list(RADAR_AXES)
        assert points[0].elevated is True
        assert all(not p.elevated for p in points[1:])
        assert points[0].ratio == pytest.approx((8.0 - 2.8) / 13.9)
        assert (points[0].x, points[0].y) == self.radar.patient_polygon(record)[0]

    def test_grid(self):
        rings = self.radar.rings()
        assert len(rings) == 5
        assert all(len(ring) == 6 for ring in rings)
        assert rings[-1][0][1] == pytest.approx(150 - 115)

        spokes = self.radar.spokes()
        assert len(spokes) == 6
        assert spokes[0][:2] == (150.0, 150.0)

        anchors = self.radar.label_anchors()
        assert anchors[0][1] == "Glucose"
        assert anchors[0][3] == pytest.approx(150 - 133)

class TestTimelineGeometry:
    """Test timeline scaling"""

    def setup_method(self):
        self.timeline = TimelineGeometry()

    def test_empty_history(self):
        layout = self.timeline.layout([])
        assert layout.empty is True
        assert "No snapshots yet" in layout.message
        assert layout.points == []
        assert layout.line == []

    def test_single_point_centred(self):
        layout = self.timeline.layout(make_snapshots([5.0]))

        assert layout.empty is False
        assert len(layout.points) == 1
        point = layout.points[0]
        assert point.x == pytest.approx(12 + (250 - 24) / 2)
        assert point.y == pytest.approx(10 + 54 - 0.1 * 54)
        assert point.tick_label == "1"
        assert layout.line == []
        assert layout.area == []

    def test_y_scale_floor_keeps_reference_visible(self):
        layout = self.timeline.layout(make_snapshots([2.0, 4.0]))
        assert layout.max_y == 50.0
        assert layout.threshold_y == pytest.approx(64 - 10 / 50 * 54)
        assert layout.threshold_line == (12.0, layout.threshold_y, 238.0, layout.threshold_y)

    def test_y_scale_grows_with_data(self):
        layout = self.timeline.layout(make_snapshots([5.0, 60.0]))

        assert layout.max_y == 60.0
        assert layout.points[0].x == pytest.approx(12.0)
        assert layout.points[1].x == pytest.approx(238.0)
        # Highest point touches the top padding, nothing clips
        assert layout.points[1].y == pytest.approx(10.0)
        assert layout.threshold_y == pytest.approx(55.0)

    def test_line_and_area(self):
        layout = self.timeline.layout(make_snapshots([5.0, 20.0, 10.0]))

        assert len(layout.line) == 3
        assert len(layout.area) == 5
        assert layout.area[-2] == (pytest.approx(238.0), pytest.approx(64.0))
        assert layout.area[-1] == (pytest.approx(12.0), pytest.approx(64.0))

    def test_tick_labels(self):
        layout = self.timeline.layout(make_snapshots([float(i) for i in range(12)]))
        ticks = [p.tick_label for p in layout.points if p.tick_label]
        assert ticks == ["1", "6", "11", "12"]

    def test_custom_width(self):
        layout = self.timeline.layout(make_snapshots([5.0, 6.0]), width=400)
        assert layout.width == 400
        assert layout.points[-1].x == pytest.approx(388.0)

if __name__ == "__main__":
    pytest.main([__file__])
