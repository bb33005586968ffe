#!/usr/bin/env python3
"""
Calculator Service - coordinates the session for an interactive front end
Every user action runs one synchronous recompute and hands the result to an
optional renderer callback.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
from dataclasses import dataclass, field

from diabetes_risk.schema import (InputRecord, ModelConfig, RiskEvaluation, RiskField,
                                  RadarPoint, TimelineLayout, UnitMode, CONVERTIBLE_FIELDS,
                                  TOGGLE_FIELDS)
from diabetes_risk.model import RiskModel, resolve_field
from diabetes_risk.geometry import RadarGeometry, TimelineGeometry
from diabetes_risk.session import SessionState
from diabetes_risk.errors import CalculatorError, ErrorCode
from services.risk_display import RiskDisplayService, ScenarioComparison, WhatIfBadge

logger = logging.getLogger(__name__)

@dataclass
class CalculationResult:
    """Everything the renderer needs after one recompute"""
    evaluation: RiskEvaluation
    view: Dict[str, Any]
    radar_points: List[RadarPoint]
    radar_polygon: List[Tuple[float, float]]
    unit_mode: UnitMode
    comparison: Optional[ScenarioComparison] = None
    what_if_badge: Optional[WhatIfBadge] = None
    slider_fills: Dict[RiskField, float] = field(default_factory=dict)

    @property
    def risk_pct(self) -> float:
        return self.evaluation.risk_pct

class CalculatorService:
    """Replays the calculator's interactions over plain data"""

    def __init__(self, model_config: Optional[ModelConfig] = None,
                 display: Optional[RiskDisplayService] = None,
                 renderer: Optional[Callable[[CalculationResult], None]] = None):
        self.model_config = model_config or ModelConfig()
        self.model = RiskModel(self.model_config)
        self.converter = self.model.converter
        self.radar = RadarGeometry(self.model_config)
        self.timeline = TimelineGeometry()
        self.display = display or RiskDisplayService(model_config=self.model_config)
        self.renderer = renderer

        self.state = SessionState()
        self.values: Dict[RiskField, float] = self._default_values(UnitMode.US)
        self.last_result: Optional[CalculationResult] = None

    def _default_values(self, mode: UnitMode) -> Dict[RiskField, float]:
        return {f: d.for_mode(mode) for f, d in self.model_config.defaults.items()}

    def current_record(self) -> InputRecord:
        """Fresh immutable record of the displayed values"""
        return InputRecord(**{f.value: v for f, v in self.values.items()},
                           unit_mode=self.state.unit_mode)

    def current_risk(self) -> float:
        return self.model.compute_probability(self.model.to_si(self.current_record())) * 100

    def _clamp(self, risk_field: RiskField, value: float) -> float:
        field_range = self.model_config.ranges.get(risk_field)
        if field_range is None:
            return value
        return field_range.for_mode(self.state.unit_mode).clamp(value)

    def _require_slider(self, risk_field: RiskField) -> None:
        if risk_field not in self.model_config.ranges:
            raise CalculatorError(
                error_code=ErrorCode.INPUT_NOT_A_SLIDER,
                message=f"Field '{risk_field.value}' has no slider",
                details={"field": risk_field.value}
            )

    def calculate(self) -> CalculationResult:
        """Full recompute-and-render pass"""
        evaluation = self.model.evaluate(self.current_record())
        risk_pct = evaluation.risk_pct

        comparison = None
        if self.state.comparing and self.state.baseline_risk is not None:
            comparison = self.display.scenario_comparison(self.state.baseline_risk, risk_pct)

        badge = None
        delta = self.state.drag_delta(risk_pct)
        if delta is not None:
            badge = self.display.what_if_badge(self.state.active_field, delta)

        result = CalculationResult(
            evaluation=evaluation,
            view=self.display.build_view(evaluation),
            radar_points=self.radar.patient_points(evaluation.si, evaluation.elevated.factors),
            radar_polygon=self.radar.patient_polygon(evaluation.si),
            unit_mode=self.state.unit_mode,
            comparison=comparison,
            what_if_badge=badge,
            slider_fills={
                f: self.display.slider_fill(f, self.values[f], self.state.unit_mode)
                for f in self.model_config.ranges
            }
        )

        self.last_result = result
        if self.renderer:
            self.renderer(result)
        return result

    def slider_start(self, risk_field: Union[RiskField, str]) -> None:
        risk_field = resolve_field(risk_field)
        self._require_slider(risk_field)
        self.state.start_drag(risk_field, self.current_risk())

    def slider_input(self, risk_field: Union[RiskField, str], value: float) -> CalculationResult:
        risk_field = resolve_field(risk_field)
        self._require_slider(risk_field)
        self.values[risk_field] = self._clamp(risk_field, value)
        self.state.active_field = risk_field
        return self.calculate()

    def slider_end(self, risk_field: Union[RiskField, str]) -> None:
        risk_field = resolve_field(risk_field)
        self._require_slider(risk_field)
        if self.state.active_field not in (None, risk_field):
            logger.debug(f"Drag on {self.state.active_field.value} ended from {risk_field.value}")
        # Badge fade-out is left to the renderer
        self.state.end_drag()

    def value_change(self, risk_field: Union[RiskField, str], value: float) -> CalculationResult:
        """Typed entry; clamped to the slider bounds of the active unit system"""
        risk_field = resolve_field(risk_field)
        self._require_slider(risk_field)
        self.values[risk_field] = self._clamp(risk_field, value)
        return self.calculate()

    def set_flag(self, risk_field: Union[RiskField, str], checked: bool) -> CalculationResult:
        risk_field = resolve_field(risk_field)
        if risk_field not in TOGGLE_FIELDS:
            raise CalculatorError(
                error_code=ErrorCode.INPUT_UNKNOWN_FIELD,
                message=f"Field '{risk_field.value}' is not a toggle",
                details={"field": risk_field.value, "toggles": [f.value for f in TOGGLE_FIELDS]}
            )
        self.values[risk_field] = 1.0 if checked else 0.0
        return self.calculate()

    def set_unit_mode(self, mode: Union[UnitMode, str]) -> Optional[CalculationResult]:
        """
        Switch display units, converting the unit-bearing values with clamping
        and rounding to the new slider granularity. No-op if unchanged.
        """
        try:
            mode = UnitMode(mode)
        except ValueError as e:
            raise CalculatorError(
                error_code=ErrorCode.INPUT_INVALID_VALUE,
                message=f"Unknown unit mode {mode!r}",
                details={"unit_mode": str(mode), "valid_modes": [m.value for m in UnitMode]},
                original_exception=e
            )
        if not self.state.set_unit_mode(mode):
            return None

        current = {f: self.values[f] for f in CONVERTIBLE_FIELDS}
        self.values.update(self.converter.convert_display_values(current, mode))
        return self.calculate()

    def toggle_units(self) -> Optional[CalculationResult]:
        return self.set_unit_mode(UnitMode.US if self.state.is_metric else UnitMode.SI)

    def reset(self) -> CalculationResult:
        self.state.reset()
        self.values = self._default_values(UnitMode.US)
        return self.calculate()

    def snapshot(self) -> TimelineLayout:
        record = self.current_record()
        si_record = self.model.to_si(record)
        risk_pct = self.model.compute_probability(si_record) * 100
        self.state.record_snapshot(risk_pct, si_record)
        return self.timeline_layout()

    def timeline_layout(self, width: Optional[float] = None) -> TimelineLayout:
        return self.timeline.layout(self.state.history.to_list(), width)

    def toggle_comparison(self) -> Optional[ScenarioComparison]:
        """Start or stop comparing against the risk at activation"""
        risk_pct = self.current_risk()
        if self.state.toggle_comparison(risk_pct):
            return self.display.scenario_comparison(self.state.baseline_risk, risk_pct)
        return None

    def what_if(self, risk_field: Union[RiskField, str], direction: int) -> float:
        return self.model.compute_what_if_delta(self.current_record(), risk_field, direction)
