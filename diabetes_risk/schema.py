"""
Pydantic schemas for the diabetes risk calculator
"""

from pydantic import BaseModel, ConfigDict, model_validator
from typing import List, Dict, Optional, Tuple
from datetime import datetime
from enum import Enum

class RiskField(str, Enum):
    AGE = "age"
    RACE = "race"
    PARENT_HIST = "parent_hist"
    SBP = "sbp"
    WAIST = "waist"
    HEIGHT = "height"
    FAST_GLU = "fast_glu"
    CHOL_HDL = "chol_hdl"
    CHOL_TRI = "chol_tri"

class UnitMode(str, Enum):
    US = "us"
    SI = "si"

# Fields whose value depends on the unit system
CONVERTIBLE_FIELDS = (
    RiskField.HEIGHT,
    RiskField.WAIST,
    RiskField.FAST_GLU,
    RiskField.CHOL_HDL,
    RiskField.CHOL_TRI,
)

# Fields backed by a slider (race and parental history are toggles)
SLIDER_FIELDS = (
    RiskField.AGE,
    RiskField.SBP,
    RiskField.HEIGHT,
    RiskField.WAIST,
    RiskField.FAST_GLU,
    RiskField.CHOL_HDL,
    RiskField.CHOL_TRI,
)

# Binary fields, 0 or 1
TOGGLE_FIELDS = (RiskField.RACE, RiskField.PARENT_HIST)

class InputRecord(BaseModel):
    """One complete set of patient measurements in a single unit system"""
    model_config = ConfigDict(frozen=True)

    age: float
    race: float  # 1 = Black, 0 = other
    parent_hist: float  # 1 = parent with diabetes
    sbp: float  # mmHg in both systems
    waist: float  # in / cm
    height: float  # in / cm
    fast_glu: float  # mg/dL / mmol/L
    chol_hdl: float  # mg/dL / mmol/L
    chol_tri: float  # mg/dL / mmol/L

    unit_mode: UnitMode = UnitMode.US

    def get(self, field: RiskField) -> float:
        return getattr(self, field.value)

    def replace(self, **updates) -> "InputRecord":
        """Return a copy with the given fields replaced"""
        return self.model_copy(update=updates)

    def field_values(self) -> Dict[RiskField, float]:
        return {field: self.get(field) for field in RiskField}

class UnitRange(BaseModel):
    """Slider bounds for one field in one unit system"""
    model_config = ConfigDict(frozen=True)

    min: float
    max: float
    step: float

    def clamp(self, value: float) -> float:
        return min(max(value, self.min), self.max)

class FieldRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    us: UnitRange
    si: UnitRange

    def for_mode(self, mode: UnitMode) -> UnitRange:
        return self.si if mode == UnitMode.SI else self.us

class FieldDefault(BaseModel):
    model_config = ConfigDict(frozen=True)

    us: float
    si: float

    def for_mode(self, mode: UnitMode) -> float:
        return self.si if mode == UnitMode.SI else self.us

class ClinicalThresholds(BaseModel):
    """Clinical decision cut-points, SI units (ADA 2024, ESC 2023, WHO)"""
    model_config = ConfigDict(frozen=True)

    fast_glu_elevated: float = 5.6
    fast_glu_high: float = 7.0
    sbp_elevated: float = 130
    sbp_high: float = 160
    chol_hdl_low: float = 1.0
    chol_hdl_very_low: float = 0.8
    chol_tri_elevated: float = 1.7
    chol_tri_high: float = 2.3
    waist_elevated: float = 94
    waist_high: float = 102

    # Triglyceride cutoff applied to the raw value when displaying US units
    chol_tri_us_elevated: float = 150

class ModelConfig(BaseModel):
    """Coefficients and per-field tables for the ARIC diabetes model (Schmidt et al. 2005)"""
    model_config = ConfigDict(frozen=True)

    # Logistic-regression betas
    betas: Dict[RiskField, float] = {
        RiskField.AGE: 0.0173,
        RiskField.RACE: 0.4433,
        RiskField.PARENT_HIST: 0.4981,
        RiskField.SBP: 0.0111,
        RiskField.WAIST: 0.0273,  # cm
        RiskField.HEIGHT: -0.0326,  # cm
        RiskField.FAST_GLU: 1.5849,  # mmol/L
        RiskField.CHOL_HDL: -0.4718,  # mmol/L
        RiskField.CHOL_TRI: 0.242,  # mmol/L
    }
    intercept: float = -9.9808

    # Population means from the ARIC baseline cohort (SI)
    means: Dict[RiskField, float] = {
        RiskField.AGE: 54,
        RiskField.RACE: 0.25,
        RiskField.PARENT_HIST: 0.3,
        RiskField.SBP: 120,
        RiskField.WAIST: 97,
        RiskField.HEIGHT: 168,
        RiskField.FAST_GLU: 5.5,
        RiskField.CHOL_HDL: 1.3,
        RiskField.CHOL_TRI: 1.7,
    }

    # US -> SI multipliers
    conversions: Dict[RiskField, float] = {
        RiskField.HEIGHT: 2.54,
        RiskField.WAIST: 2.54,
        RiskField.FAST_GLU: 1 / 18,
        RiskField.CHOL_HDL: 1 / 38.67,
        RiskField.CHOL_TRI: 1 / 88.57,
    }

    ranges: Dict[RiskField, FieldRange] = {
        RiskField.AGE: FieldRange(us=UnitRange(min=20, max=80, step=1), si=UnitRange(min=20, max=80, step=1)),
        RiskField.SBP: FieldRange(us=UnitRange(min=80, max=220, step=1), si=UnitRange(min=80, max=220, step=1)),
        RiskField.HEIGHT: FieldRange(us=UnitRange(min=48, max=84, step=1), si=UnitRange(min=122, max=213, step=1)),
        RiskField.WAIST: FieldRange(us=UnitRange(min=25, max=60, step=1), si=UnitRange(min=64, max=152, step=1)),
        RiskField.FAST_GLU: FieldRange(us=UnitRange(min=50, max=300, step=1), si=UnitRange(min=2.8, max=16.7, step=0.1)),
        RiskField.CHOL_HDL: FieldRange(us=UnitRange(min=20, max=100, step=1), si=UnitRange(min=0.5, max=2.6, step=0.1)),
        RiskField.CHOL_TRI: FieldRange(us=UnitRange(min=50, max=500, step=1), si=UnitRange(min=0.6, max=5.6, step=0.1)),
    }

    thresholds: ClinicalThresholds = ClinicalThresholds()

    labels: Dict[RiskField, str] = {
        RiskField.AGE: "Age",
        RiskField.RACE: "Race",
        RiskField.PARENT_HIST: "Parental History",
        RiskField.SBP: "Blood Pressure",
        RiskField.WAIST: "Waist Size",
        RiskField.HEIGHT: "Height",
        RiskField.FAST_GLU: "Glucose",
        RiskField.CHOL_HDL: "HDL Cholesterol",
        RiskField.CHOL_TRI: "Triglycerides",
    }

    radar_labels: Dict[RiskField, str] = {
        RiskField.FAST_GLU: "Glucose",
        RiskField.SBP: "BP",
        RiskField.CHOL_TRI: "Triglyc.",
        RiskField.WAIST: "Waist",
        RiskField.CHOL_HDL: "HDL",
        RiskField.AGE: "Age",
    }

    # Values restored by a reset
    defaults: Dict[RiskField, FieldDefault] = {
        RiskField.AGE: FieldDefault(us=50, si=50),
        RiskField.RACE: FieldDefault(us=0, si=0),
        RiskField.PARENT_HIST: FieldDefault(us=0, si=0),
        RiskField.SBP: FieldDefault(us=120, si=120),
        RiskField.HEIGHT: FieldDefault(us=66, si=168),
        RiskField.WAIST: FieldDefault(us=36, si=91),
        RiskField.FAST_GLU: FieldDefault(us=95, si=5.3),
        RiskField.CHOL_HDL: FieldDefault(us=50, si=1.3),
        RiskField.CHOL_TRI: FieldDefault(us=150, si=1.7),
    }

    @model_validator(mode="after")
    def check_tables_complete(self) -> "ModelConfig":
        for name in ("betas", "means", "labels", "defaults"):
            missing = [f.value for f in RiskField if f not in getattr(self, name)]
            if missing:
                raise ValueError(f"{name} is missing fields: {missing}")

        missing = [f.value for f in CONVERTIBLE_FIELDS if f not in self.conversions]
        if missing:
            raise ValueError(f"conversions is missing fields: {missing}")

        missing = [f.value for f in SLIDER_FIELDS if f not in self.ranges]
        if missing:
            raise ValueError(f"ranges is missing fields: {missing}")

        return self

    def step_for(self, field: RiskField, mode: UnitMode) -> float:
        """Slider granularity; toggle fields move in whole units"""
        field_range = self.ranges.get(field)
        if field_range is None:
            return 1.0
        return field_range.for_mode(mode).step

    def default_record(self, mode: UnitMode = UnitMode.US) -> InputRecord:
        values = {field.value: default.for_mode(mode) for field, default in self.defaults.items()}
        return InputRecord(**values, unit_mode=mode)

    def mean_record(self) -> InputRecord:
        """Population-mean patient, SI units"""
        return InputRecord(**{field.value: mean for field, mean in self.means.items()},
                           unit_mode=UnitMode.SI)

class ElevatedFactors(BaseModel):
    """Fields past their clinical threshold, in check order"""
    model_config = ConfigDict(frozen=True)

    factors: List[RiskField]
    waist_is_high: bool

    def __contains__(self, field: RiskField) -> bool:
        return field in self.factors

class RiskEvaluation(BaseModel):
    """Result of one full model pass"""
    model_config = ConfigDict(frozen=True)

    raw: InputRecord
    si: InputRecord
    score: float
    probability: float
    contributions: Dict[RiskField, float]
    shares: Dict[RiskField, float]  # percent of total absolute contribution
    elevated: ElevatedFactors

    @property
    def risk_pct(self) -> float:
        return self.probability * 100

class Snapshot(BaseModel):
    """Recorded point of the session history"""
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    risk_pct: float
    si_values: InputRecord

class RadarPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: RiskField
    ratio: float
    x: float
    y: float
    elevated: bool = False

class TimelinePoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    risk_pct: float
    x: float
    y: float
    tick_label: Optional[str] = None

class TimelineLayout(BaseModel):
    """Plot coordinates for the snapshot history"""
    model_config = ConfigDict(frozen=True)

    width: float
    height: float
    empty: bool
    message: Optional[str] = None
    max_y: float = 50.0
    threshold_y: Optional[float] = None
    threshold_line: Optional[Tuple[float, float, float, float]] = None  # x1, y1, x2, y2
    points: List[TimelinePoint] = []
    line: List[Tuple[float, float]] = []
    area: List[Tuple[float, float]] = []
