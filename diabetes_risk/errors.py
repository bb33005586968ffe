"""
Error codes for the diabetes risk calculator.
The numeric core is total over well-formed input; these cover configuration
problems and malformed requests from callers.
"""

from enum import Enum
from typing import Dict, Any, Optional
from datetime import datetime, timezone
import json
import logging

class ErrorCode(Enum):
    """Specific error codes for calculator components"""

    # Configuration Errors (CFG_xxx)
    CFG_FILE_NOT_FOUND = "CFG_001"
    CFG_INVALID_CONFIG = "CFG_002"
    CFG_UNREADABLE = "CFG_003"

    # Input Errors (INPUT_xxx)
    INPUT_UNKNOWN_FIELD = "INPUT_002"
    INPUT_INVALID_DIRECTION = "INPUT_003"
    INPUT_NOT_A_SLIDER = "INPUT_004"
    INPUT_INVALID_VALUE = "INPUT_005"

class CalculatorError(Exception):
    """Base exception for the calculator with a specific error code"""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc).isoformat()

        super().__init__(f"[{error_code.value}] {message}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/CLI output"""
        return {
            "error_code": self.error_code.value,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp,
            "original_error": str(self.original_exception) if self.original_exception else None
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

def log_error(logger: logging.Logger, error: CalculatorError, level: int = logging.ERROR) -> None:
    """Log error with structured format"""
    logger.log(
        level,
        f"CALCULATOR_ERROR: {error.error_code.value} - {error.message}",
        extra={
            "error_code": error.error_code.value,
            "details": error.details,
            "error_timestamp": error.timestamp
        }
    )

    if error.original_exception:
        logger.debug(
            f"Original exception for {error.error_code.value}:",
            exc_info=error.original_exception
        )

def unknown_field_error(name: str) -> CalculatorError:
    from .schema import RiskField

    return CalculatorError(
        error_code=ErrorCode.INPUT_UNKNOWN_FIELD,
        message=f"Unknown risk field '{name}'",
        details={
            "field": name,
            "valid_fields": [f.value for f in RiskField]
        }
    )

def invalid_direction_error(direction: Any) -> CalculatorError:
    return CalculatorError(
        error_code=ErrorCode.INPUT_INVALID_DIRECTION,
        message=f"What-if direction must be -1 or +1, got {direction!r}",
        details={"direction": direction}
    )
