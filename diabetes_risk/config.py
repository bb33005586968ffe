"""
Configuration loading for the risk model
"""

import yaml
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from .schema import ModelConfig
from .errors import CalculatorError, ErrorCode

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/diabetes_model.yaml"

def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a YAML mapping; an empty file yields an empty dict"""
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise CalculatorError(
            error_code=ErrorCode.CFG_UNREADABLE,
            message=f"Could not read config file {path}",
            details={"path": str(path)},
            original_exception=e
        )

    if not isinstance(data, dict):
        raise CalculatorError(
            error_code=ErrorCode.CFG_INVALID_CONFIG,
            message=f"Config file {path} must contain a mapping",
            details={"path": str(path), "type": type(data).__name__}
        )
    return data

def build_model_config(data: Dict[str, Any]) -> ModelConfig:
    """Validate a raw mapping into a ModelConfig; unspecified tables keep their defaults"""
    try:
        return ModelConfig(**data)
    except ValidationError as e:
        raise CalculatorError(
            error_code=ErrorCode.CFG_INVALID_CONFIG,
            message="Invalid model configuration",
            details={"errors": [err["msg"] for err in e.errors()]},
            original_exception=e
        )

def load_model_config(config_path: Optional[Union[str, Path]] = None,
                      required: bool = False) -> ModelConfig:
    """
    Load model coefficients and tables from YAML

    A missing file falls back to the built-in ARIC tables unless required is set.
    Files that exist but cannot be parsed or validated always raise.
    """
    path = Path(config_path or DEFAULT_CONFIG_PATH)

    if not path.exists():
        if required:
            raise CalculatorError(
                error_code=ErrorCode.CFG_FILE_NOT_FOUND,
                message=f"Config file {path} not found",
                details={"path": str(path)}
            )
        logger.warning(f"Config file {path} not found, using defaults")
        return ModelConfig()

    data = load_yaml(path)
    config = build_model_config(data.get('model', data))
    logger.info(f"Loaded model configuration from {path}")
    return config
