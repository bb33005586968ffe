"""
ARIC Diabetes Risk Calculator
Logistic risk model, unit conversion, chart geometry and session state
"""

from .schema import (RiskField, UnitMode, InputRecord, ModelConfig, RiskEvaluation,
                     ElevatedFactors, Snapshot)
from .convert import UnitConverter
from .model import RiskModel
from .geometry import RadarGeometry, TimelineGeometry
from .session import SessionState, SnapshotHistory
from .config import load_model_config
from .errors import CalculatorError, ErrorCode

__all__ = [
    'RiskField', 'UnitMode', 'InputRecord', 'ModelConfig', 'RiskEvaluation',
    'ElevatedFactors', 'Snapshot', 'UnitConverter', 'RiskModel', 'RadarGeometry',
    'TimelineGeometry', 'SessionState', 'SnapshotHistory', 'load_model_config',
    'CalculatorError', 'ErrorCode'
]
