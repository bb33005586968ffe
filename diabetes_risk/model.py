"""
Logistic risk model - probability, per-factor contributions, elevated factors
and what-if deltas for the ARIC diabetes score
"""

import numpy as np
from scipy.special import expit
from typing import Dict, Optional, Tuple, Union
import logging

from .schema import (InputRecord, ModelConfig, RiskField, RiskEvaluation,
                    ElevatedFactors, UnitMode)
from .convert import UnitConverter
from .errors import unknown_field_error, invalid_direction_error

logger = logging.getLogger(__name__)

# Slider steps moved by a what-if query
WHAT_IF_STEPS = 5

FIELD_ORDER = tuple(RiskField)

def resolve_field(field: Union[RiskField, str]) -> RiskField:
    """Accept a RiskField or its string value"""
    if isinstance(field, RiskField):
        return field
    try:
        return RiskField(field)
    except ValueError:
        raise unknown_field_error(str(field))

class RiskModel:
    """Pure evaluation of the logistic model; no state beyond its configuration"""

    def __init__(self, config: Optional[ModelConfig] = None,
                 converter: Optional[UnitConverter] = None):
        self.config = config or ModelConfig()
        self.converter = converter or UnitConverter(self.config)

        self._betas = np.array([self.config.betas[f] for f in FIELD_ORDER], dtype=float)
        self._means = np.array([self.config.means[f] for f in FIELD_ORDER], dtype=float)
        self.baseline_score = float(self.config.intercept + self._betas @ self._means)

    @staticmethod
    def _vector(record: InputRecord) -> np.ndarray:
        return np.array([record.get(f) for f in FIELD_ORDER], dtype=float)

    def to_si(self, record: InputRecord) -> InputRecord:
        return self.converter.to_si(record)

    def compute_score(self, si_record: InputRecord) -> float:
        """Linear predictor: intercept + sum(beta_i * x_i)"""
        return float(self.config.intercept + self._betas @ self._vector(si_record))

    def compute_probability(self, si_record: InputRecord) -> float:
        """
        Probability of incident diabetes
        p = 1 / (1 + exp(-score)); expit saturates instead of overflowing
        """
        return float(expit(self.compute_score(si_record)))

    def compute_contributions(self, si_record: InputRecord) -> Dict[RiskField, float]:
        """
        Decompose the score around the population mean:
        contribution_i = beta_i * (x_i - mean_i)
        The entries sum to score - baseline_score.
        """
        contributions = self._betas * (self._vector(si_record) - self._means)
        return {field: float(value) for field, value in zip(FIELD_ORDER, contributions)}

    @staticmethod
    def contribution_shares(contributions: Dict[RiskField, float]) -> Dict[RiskField, float]:
        """
        Percentage share of each field in the total absolute contribution
        (Van Belle & Calster, 2015). All zero when every contribution is zero.
        """
        total = sum(abs(value) for value in contributions.values())
        if total == 0:
            return {field: 0.0 for field in contributions}
        return {field: abs(value) / total * 100 for field, value in contributions.items()}

    def get_elevated_factors(self, si_record: InputRecord, raw_record: InputRecord,
                             is_metric: Optional[bool] = None) -> ElevatedFactors:
        """
        Flag fields past their clinical threshold.
        Triglycerides use the cutoff of the displayed unit system: the SI value
        against 1.7 mmol/L in SI mode, the raw value against 150 mg/dL in US mode.
        The two cutoffs are not exact conversions of each other.
        is_metric defaults to the unit mode of the raw record.
        """
        t = self.config.thresholds
        elevated = []

        if si_record.fast_glu >= t.fast_glu_elevated:
            elevated.append(RiskField.FAST_GLU)
        if si_record.sbp >= t.sbp_elevated:
            elevated.append(RiskField.SBP)
        if si_record.chol_hdl <= t.chol_hdl_low:
            elevated.append(RiskField.CHOL_HDL)

        if is_metric is None:
            is_metric = raw_record.unit_mode == UnitMode.SI

        if is_metric:
            tri_elevated = si_record.chol_tri >= t.chol_tri_elevated
        else:
            tri_elevated = raw_record.chol_tri >= t.chol_tri_us_elevated
        if tri_elevated:
            elevated.append(RiskField.CHOL_TRI)

        if si_record.waist >= t.waist_elevated:
            elevated.append(RiskField.WAIST)

        return ElevatedFactors(factors=elevated, waist_is_high=si_record.waist >= t.waist_high)

    def compute_what_if_delta(self, raw_record: InputRecord, field: Union[RiskField, str],
                              direction: int) -> float:
        """
        Risk change in percentage points if the field's slider moved five steps
        in the given direction (-1 or +1). The record itself is not modified.
        """
        field = resolve_field(field)
        if direction not in (-1, 1):
            raise invalid_direction_error(direction)

        base_prob = self.compute_probability(self.to_si(raw_record))

        step = self.config.step_for(field, raw_record.unit_mode)
        altered = raw_record.replace(
            **{field.value: raw_record.get(field) + direction * step * WHAT_IF_STEPS}
        )
        alt_prob = self.compute_probability(self.to_si(altered))

        return (alt_prob - base_prob) * 100

    def what_if_deltas(self, raw_record: InputRecord,
                       fields=None) -> Dict[RiskField, Tuple[float, float]]:
        """(down, up) deltas for each slider field"""
        fields = fields or self.config.ranges.keys()
        return {
            field: (self.compute_what_if_delta(raw_record, field, -1),
                    self.compute_what_if_delta(raw_record, field, 1))
            for field in fields
        }

    def evaluate(self, raw_record: InputRecord) -> RiskEvaluation:
        """One full pass over a freshly read input record"""
        si_record = self.to_si(raw_record)
        score = self.compute_score(si_record)
        contributions = self.compute_contributions(si_record)

        evaluation = RiskEvaluation(
            raw=raw_record,
            si=si_record,
            score=score,
            probability=float(expit(score)),
            contributions=contributions,
            shares=self.contribution_shares(contributions),
            elevated=self.get_elevated_factors(si_record, raw_record)
        )

        logger.debug(f"Evaluated risk {evaluation.risk_pct:.2f}% "
                     f"(score={score:.4f}, elevated={[f.value for f in evaluation.elevated.factors]})")
        return evaluation

    def beta_strength(self, field: Union[RiskField, str]) -> Tuple[str, bool]:
        """
        Magnitude class of a beta relative to the largest one
        Returns (label, increases_risk)
        """
        field = resolve_field(field)
        beta = self.config.betas[field]
        magnitude = abs(beta) / float(np.max(np.abs(self._betas)))

        if magnitude > 0.5:
            label = "strong"
        elif magnitude > 0.15:
            label = "moderate"
        else:
            label = "weak"

        return label, beta > 0
