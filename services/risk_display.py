#!/usr/bin/env python3
"""
Risk Display Service - presentation data for the calculator front end
Turns a model evaluation into plain values (levels, bars, cards, badges) that an
external renderer draws; nothing here touches a document or a canvas.
"""

import logging
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from pathlib import Path

from diabetes_risk.schema import ModelConfig, RiskEvaluation, RiskField, ElevatedFactors
from diabetes_risk.model import RiskModel
from diabetes_risk.convert import round_half_up
from diabetes_risk.config import load_yaml
from diabetes_risk.errors import CalculatorError, ErrorCode

logger = logging.getLogger(__name__)

DEFAULT_TREATMENTS: Dict[str, Dict[str, Any]] = {
    "fast_glu": {
        "id": "glucose-treatment",
        "icon": "bloodtype",
        "title": "Blood Sugar Management",
        "therapies": [
            {"name": "Standard Medication", "desc": "Metformin is often the first step to help control blood sugar levels."},
            {"name": "Heart & Kidney Protection", "desc": "If you have heart or kidney concerns, ask your doctor about newer medications that specifically protect these organs (SGLT2 inhibitors or GLP-1) while also supporting weight loss."},
        ],
    },
    "sbp": {
        "id": "bp-treatment",
        "icon": "favorite",
        "title": "Blood Pressure Control",
        "therapies": [
            {"name": "Combination Medications", "desc": "It is recommended to start with a combination of different blood pressure medications (e.g. RAS inhibitors and CCBs)."},
            {"name": "Heart-Healthy Diet", "desc": "Restriction of alcohol and sodium consumption, increased consumption of vegetables, use of low-fat dairy products can lower blood pressure naturally."},
        ],
    },
    "chol_hdl": {
        "id": "hdl-treatment",
        "icon": "water_drop",
        "title": "Good Cholesterol (HDL) Improvement",
        "therapies": [
            {"name": "Regular Exercise", "desc": "Aim for 150 minutes per week of activity like brisk walking, or 75 minutes of intense exercise."},
            {"name": "Healthy Lifestyle", "desc": "Stopping smoking, limiting alcohol, and eating healthy fats (olive oil, nuts, fish) all help."},
        ],
    },
    "chol_tri": {
        "id": "tri-treatment",
        "icon": "science",
        "title": "Blood Fats (Triglycerides)",
        "therapies": [
            {"name": "Prescription Fish Oil", "desc": "If blood fats (triglycerides) remain high, special prescription fish oil (icosapent ethyl) might be considered."},
            {"name": "Cholesterol Medication", "desc": "Cholesterol-lowering medication (Statins) is usually recommended to protect your blood vessels."},
        ],
    },
    "waist": {
        "id": "waist-treatment",
        "icon": "straighten",
        "title": "Weight Management",
        "therapies": [
            {"name": "Diet & Exercise", "desc": "Reducing daily calories and exercising more leads to steady weight loss."},
            {"name": "Medications", "desc": "Glucose-lowering drugs with additional weight-reducing effects (e.g. GLP-1RA) can also help."},
        ],
        "surgical_option": {"name": "Surgical Options", "desc": "For significant obesity with health problems, weight-loss surgery may be discussed."},
    },
}

DEFAULT_CAUSALITY_CHAINS: List[Dict[str, Any]] = [
    {"label": "Waist ↑", "factors": ["waist"],
     "nodes": ["Waist Size", "Insulin Resistance ↑", "Blood Sugar ↑", "Diabetes Risk ↑"]},
    {"label": "HDL ↓", "factors": ["chol_hdl"],
     "nodes": ["HDL Cholesterol ↓", "Lipid Metabolism ↓", "Vascular Health ↓", "Diabetes Risk ↑"]},
    {"label": "Glucose ↑", "factors": ["fast_glu"],
     "nodes": ["Fasting Glucose ↑", "Pancreatic Beta Cell Stress", "Insulin Secretion ↓", "Diabetes Risk ↑"]},
    {"label": "BP ↑", "factors": ["sbp"],
     "nodes": ["Blood Pressure ↑", "Vascular Dysfunction", "Endothelial Damage", "Diabetes Risk ↑"]},
]

DEFAULT_COLORS: Dict[str, str] = {
    "danger": "#ff3b30",
    "warning": "#ff6723",
    "alert": "#ff9f0a",
    "safe": "#34c759",
}

ALL_NORMAL_MESSAGE = ("All modifiable risk factors are within normal range. "
                      "Continue maintaining a healthy lifestyle.")

@dataclass
class RiskLevel:
    """Banded risk with its display colour"""
    level: str  # safe, alert, warning, danger
    color: str
    marker_pct: float  # position on the 0-100 risk bar

@dataclass
class ContributionBar:
    """One row of the diverging contribution chart"""
    field: RiskField
    label: str
    contribution: float
    share_pct: float
    bar_width_pct: float
    increases_risk: bool
    display: str
    explanation: Optional[str] = None

@dataclass
class Therapy:
    name: str
    desc: str

@dataclass
class TreatmentCard:
    field: RiskField
    card_id: str
    icon: str
    title: str
    therapies: List[Therapy] = field(default_factory=list)

@dataclass
class WhatIfBadge:
    field: RiskField
    visible: bool
    text: str = ""
    css_class: str = "delta-neutral"

@dataclass
class ScenarioComparison:
    baseline_pct: float
    current_pct: float
    delta_pct: float
    status: str  # improved or worsened

@dataclass
class RiskDisplayConfig:
    """Configuration for risk display logic"""
    # Risk level cut-points, percent
    danger_pct: float = 50.0
    warning_pct: float = 25.0
    alert_pct: float = 10.0

    colors: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_COLORS))

    # Contribution chart
    explained_rows: int = 3
    min_bar_scale_pct: float = 1.0

    # What-if badge is hidden below this absolute delta, percentage points
    what_if_min_delta: float = 0.01

    # Icon array
    icon_population: int = 100
    horizon_years: int = 9

    # Heat map pointer clamps, score units
    glucose_clamp: float = 4.0
    other_clamp: float = 3.0

    treatments: Dict[str, Dict[str, Any]] = field(default_factory=lambda: dict(DEFAULT_TREATMENTS))
    causality_chains: List[Dict[str, Any]] = field(default_factory=lambda: list(DEFAULT_CAUSALITY_CHAINS))

class RiskDisplayService:
    """Service for turning evaluations into display-ready data"""

    def __init__(self, config_path: Optional[str] = None,
                 model_config: Optional[ModelConfig] = None):
        self.config_path = config_path or "config/risk_display.yaml"
        self.config = self._load_config()
        self.model_config = model_config or ModelConfig()
        self.model = RiskModel(self.model_config)

    def _load_config(self) -> RiskDisplayConfig:
        """Load configuration from YAML file"""
        config_file = Path(self.config_path)
        if not config_file.exists():
            logger.warning(f"Config file {self.config_path} not found, using defaults")
            return RiskDisplayConfig()

        config_data = load_yaml(config_file)

        sections = {}
        for key, expected in (('display_thresholds', dict), ('colors', dict),
                              ('treatments', dict), ('causality_chains', list)):
            value = config_data.get(key)
            if value is None:
                continue
            if not isinstance(value, expected):
                raise CalculatorError(
                    error_code=ErrorCode.CFG_INVALID_CONFIG,
                    message=f"Section '{key}' in {self.config_path} must be a {expected.__name__}",
                    details={"path": self.config_path, "section": key, "type": type(value).__name__}
                )
            sections[key] = value

        # Colours and treatments are merged per key over the built-in content
        content = {
            'colors': {**DEFAULT_COLORS, **sections.get('colors', {})},
            'treatments': {**DEFAULT_TREATMENTS, **sections.get('treatments', {})},
        }
        if 'causality_chains' in sections:
            content['causality_chains'] = sections['causality_chains']

        try:
            return RiskDisplayConfig(**sections.get('display_thresholds', {}), **content)
        except TypeError as e:
            raise CalculatorError(
                error_code=ErrorCode.CFG_INVALID_CONFIG,
                message=f"Invalid display configuration in {self.config_path}",
                details={"path": self.config_path, "error": str(e)},
                original_exception=e
            )

    def risk_level(self, risk_pct: float) -> RiskLevel:
        """Band the risk percentage for colouring and the hero glow"""
        if risk_pct >= self.config.danger_pct:
            level = "danger"
        elif risk_pct >= self.config.warning_pct:
            level = "warning"
        elif risk_pct >= self.config.alert_pct:
            level = "alert"
        else:
            level = "safe"

        return RiskLevel(level=level, color=self.config.colors[level],
                         marker_pct=min(risk_pct, 100.0))

    def contribution_bars(self, contributions: Dict[RiskField, float]) -> List[ContributionBar]:
        """
        Rows of the contribution chart, largest absolute contribution first

        Shares are |c_i| / sum|c_j| * 100; bar widths are relative to the largest
        share (at least 1%), and the top rows carry a plain-language explanation.
        """
        shares = self.model.contribution_shares(contributions)
        ordered = sorted(contributions.items(), key=lambda item: abs(item[1]), reverse=True)

        max_share = max([shares[f] for f, _ in ordered] + [self.config.min_bar_scale_pct])

        bars = []
        for idx, (risk_field, value) in enumerate(ordered):
            share = shares[risk_field]
            increases = value >= 0
            label = self.model_config.labels[risk_field]

            if 0 < share < 1:
                display = "<1%"
            else:
                display = f"{round_half_up(share)}%"

            explanation = None
            if idx < self.config.explained_rows:
                if increases:
                    explanation = (f"Your {label.lower()} contributes {round_half_up(share)}% "
                                   f"to your risk – it is above average.")
                else:
                    explanation = (f"Your {label.lower()} reduces your risk by {round_half_up(share)}% "
                                   f"– it is below average/protective.")

            bars.append(ContributionBar(
                field=risk_field,
                label=label,
                contribution=value,
                share_pct=share,
                bar_width_pct=share / max_share * 100,
                increases_risk=increases,
                display=display,
                explanation=explanation
            ))

        return bars

    def treatment_cards(self, elevated: ElevatedFactors,
                        contributions: Optional[Dict[RiskField, float]] = None) -> List[TreatmentCard]:
        """
        Recommendation cards for elevated factors, highest contribution first.
        Weight management gains the surgical option when the waist is high.
        An empty list means everything is within range (see ALL_NORMAL_MESSAGE).
        """
        contributions = contributions or {}
        ordered = sorted(elevated.factors, key=lambda f: contributions.get(f, 0.0), reverse=True)

        cards = []
        for risk_field in ordered:
            treatment = self.config.treatments.get(risk_field.value)
            if not treatment:
                continue

            therapies = [Therapy(**t) for t in treatment.get('therapies', [])]
            surgical = treatment.get('surgical_option')
            if risk_field == RiskField.WAIST and elevated.waist_is_high and surgical:
                therapies.append(Therapy(**surgical))

            cards.append(TreatmentCard(
                field=risk_field,
                card_id=treatment.get('id', f"{risk_field.value}-treatment"),
                icon=treatment.get('icon', ''),
                title=treatment.get('title', self.model_config.labels[risk_field]),
                therapies=therapies
            ))

        return cards

    def what_if_badge(self, risk_field: RiskField, delta: float) -> WhatIfBadge:
        if abs(delta) < self.config.what_if_min_delta:
            return WhatIfBadge(field=risk_field, visible=False)

        sign = "+" if delta > 0 else ""
        css_class = "delta-up" if delta > 0 else "delta-down"
        return WhatIfBadge(field=risk_field, visible=True,
                           text=f"{sign}{delta:.2f}%", css_class=css_class)

    def icon_array(self, risk_pct: float) -> Dict[str, Any]:
        """How many of 100 people with this profile are affected"""
        population = self.config.icon_population
        affected = min(max(round_half_up(risk_pct * population / 100), 0), population)
        return {
            "affected": affected,
            "total": population,
            "label": (f"{affected} out of {population} people with your profile may develop "
                      f"diabetes within {self.config.horizon_years} years")
        }

    def causality_chains(self, elevated: ElevatedFactors) -> List[Dict[str, Any]]:
        chains = []
        for chain in self.config.causality_chains:
            highlighted = any(RiskField(f) in elevated.factors for f in chain['factors'])
            chains.append({
                "label": chain['label'],
                "nodes": list(chain['nodes']),
                "highlighted": highlighted
            })
        return chains

    def heatmap_pointer(self, contributions: Dict[RiskField, float]) -> Dict[str, float]:
        """
        Pointer position (percent of the map) from the glucose contribution
        against the sum of all other contributions
        """
        g = self.config.glucose_clamp
        o = self.config.other_clamp

        glucose = contributions.get(RiskField.FAST_GLU, 0.0)
        other = sum(v for f, v in contributions.items() if f != RiskField.FAST_GLU)

        x_pct = 5 + (min(max(glucose, -g), g) + g) / (2 * g) * 90
        y_pct = 5 + (min(max(other, -o), o) + o) / (2 * o) * 90
        return {"left_pct": x_pct, "bottom_pct": y_pct}

    def scenario_comparison(self, baseline_pct: float, current_pct: float) -> ScenarioComparison:
        delta = current_pct - baseline_pct
        return ScenarioComparison(
            baseline_pct=baseline_pct,
            current_pct=current_pct,
            delta_pct=delta,
            status="improved" if delta < 0 else "worsened"
        )

    def slider_fill(self, risk_field: RiskField, value: float, unit_mode) -> float:
        """Filled portion of a slider track, percent"""
        bounds = self.model_config.ranges[risk_field].for_mode(unit_mode)
        return (value - bounds.min) / (bounds.max - bounds.min) * 100

    def beta_vectors(self) -> Dict[RiskField, Dict[str, Any]]:
        """Arrow direction and strength label for each model weight"""
        vectors = {}
        for risk_field, beta in self.model_config.betas.items():
            strength, increases = self.model.beta_strength(risk_field)
            vectors[risk_field] = {
                "arrow": "↑" if increases else "↓",
                "css_class": "risk-up" if increases else "protective",
                "strength": strength,
                "title": (f"Model weight: {beta:.4f} – "
                          f"{'increases' if increases else 'decreases'} risk ({strength})")
            }
        return vectors

    def build_view(self, evaluation: RiskEvaluation) -> Dict[str, Any]:
        """All evaluation-dependent display data in one mapping"""
        cards = self.treatment_cards(evaluation.elevated, evaluation.contributions)
        return {
            "risk_pct": evaluation.risk_pct,
            "risk_display": f"{evaluation.risk_pct:.1f}",
            "risk_level": self.risk_level(evaluation.risk_pct),
            "icon_array": self.icon_array(evaluation.risk_pct),
            "contribution_bars": self.contribution_bars(evaluation.contributions),
            "heatmap_pointer": self.heatmap_pointer(evaluation.contributions),
            "treatments": cards,
            "treatment_message": None if evaluation.elevated.factors else ALL_NORMAL_MESSAGE,
            "causality_chains": self.causality_chains(evaluation.elevated),
        }
