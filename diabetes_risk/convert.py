"""
Unit conversion utilities - US customary <-> SI for the model inputs
"""

from typing import Dict, Optional
import math
import logging

from .schema import InputRecord, ModelConfig, RiskField, UnitMode, CONVERTIBLE_FIELDS

logger = logging.getLogger(__name__)

class UnitConverter:
    """Converts input records and single display values between unit systems"""

    def __init__(self, config: Optional[ModelConfig] = None):
        self.config = config or ModelConfig()
        self.factors: Dict[RiskField, float] = dict(self.config.conversions)

    def to_si(self, record: InputRecord) -> InputRecord:
        """
        Convert a record to SI units
        Height/waist in -> cm, glucose and lipids mg/dL -> mmol/L.
        Age, blood pressure and the binary flags pass through.
        """
        if record.unit_mode == UnitMode.SI:
            return record.model_copy()

        updates = {
            field.value: record.get(field) * self.factors[field]
            for field in CONVERTIBLE_FIELDS
        }
        updates["unit_mode"] = UnitMode.SI
        return record.replace(**updates)

    def to_us(self, record: InputRecord) -> InputRecord:
        """Exact inverse of to_si"""
        if record.unit_mode == UnitMode.US:
            return record.model_copy()

        updates = {
            field.value: record.get(field) / self.factors[field]
            for field in CONVERTIBLE_FIELDS
        }
        updates["unit_mode"] = UnitMode.US
        return record.replace(**updates)

    def to_mode(self, record: InputRecord, mode: UnitMode) -> InputRecord:
        return self.to_si(record) if mode == UnitMode.SI else self.to_us(record)

    def convert_value(self, field: RiskField, value: float, target: UnitMode) -> float:
        """Convert one value into the target unit system"""
        factor = self.factors.get(field)
        if factor is None:
            return value

        if target == UnitMode.SI:
            return value * factor
        return value / factor

    def convert_display_value(self, field: RiskField, value: float, target: UnitMode) -> float:
        """
        Convert a displayed slider value after a unit toggle.
        The result is clamped to the target slider range and rounded to its
        granularity (one decimal for fractional steps, whole numbers otherwise).
        """
        converted = self.convert_value(field, value, target)

        field_range = self.config.ranges.get(field)
        if field_range is None:
            return converted

        bounds = field_range.for_mode(target)
        clamped = bounds.clamp(converted)

        if bounds.step < 1:
            return round(clamped, 1)
        return float(round_half_up(clamped))

    def convert_display_values(self, values: Dict[RiskField, float],
                               target: UnitMode) -> Dict[RiskField, float]:
        converted = {
            field: self.convert_display_value(field, value, target)
            for field, value in values.items()
        }
        logger.debug(f"Converted display values to {target.value}: {converted}")
        return converted

def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward +inf"""
    return math.floor(value + 0.5)
