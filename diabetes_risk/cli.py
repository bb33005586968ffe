#!/usr/bin/env python3
"""
Command line front end for the diabetes risk calculator

    diabetes-risk evaluate --age 55 --waist 40 --fast-glu 110
    diabetes-risk scenarios visits.yaml
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from .config import load_model_config, load_yaml
from .errors import CalculatorError, ErrorCode, log_error
from .model import RiskModel
from .schema import InputRecord, ModelConfig, RiskField, UnitMode, TOGGLE_FIELDS
from .session import SessionState

logger = logging.getLogger(__name__)

def _record_from_mapping(data: Dict[str, Any], config: ModelConfig,
                         mode: UnitMode) -> InputRecord:
    """
    Fill unspecified fields with the reset defaults of the unit system.
    Slider fields are clamped to their range like interactive entry; the
    toggle fields must be 0 or 1.
    """
    if not isinstance(data, dict):
        raise CalculatorError(
            error_code=ErrorCode.INPUT_INVALID_VALUE,
            message=f"Expected a mapping of field values, got {type(data).__name__}",
            details={"value": repr(data)}
        )

    unknown = [key for key in data if key not in {f.value for f in RiskField} | {"unit_mode"}]
    if unknown:
        raise CalculatorError(
            error_code=ErrorCode.INPUT_UNKNOWN_FIELD,
            message=f"Unknown fields: {unknown}",
            details={"fields": unknown}
        )

    try:
        mode = UnitMode(data.get("unit_mode", mode))
        values = {f.value: d.for_mode(mode) for f, d in config.defaults.items()}
        values.update({k: v for k, v in data.items() if k != "unit_mode"})
        record = InputRecord(**values, unit_mode=mode)
    except ValueError as e:
        raise CalculatorError(
            error_code=ErrorCode.INPUT_INVALID_VALUE,
            message="Invalid input values",
            details={"error": str(e)},
            original_exception=e
        )

    bad_flags = {f.value: record.get(f) for f in TOGGLE_FIELDS if record.get(f) not in (0.0, 1.0)}
    if bad_flags:
        raise CalculatorError(
            error_code=ErrorCode.INPUT_INVALID_VALUE,
            message=f"Toggle fields must be 0 or 1: {bad_flags}",
            details={"fields": bad_flags}
        )

    clamped = {f.value: r.for_mode(mode).clamp(record.get(f)) for f, r in config.ranges.items()}
    changed = {f.value: record.get(f) for f in config.ranges if clamped[f.value] != record.get(f)}
    if changed:
        logger.warning(f"Clamped out-of-range inputs to the slider bounds: {changed}")
    return record.replace(**clamped)

def evaluation_summary(model: RiskModel, record: InputRecord) -> Dict[str, Any]:
    evaluation = model.evaluate(record)
    return {
        "unit_mode": record.unit_mode.value,
        "risk_pct": round(evaluation.risk_pct, 2),
        "score": round(evaluation.score, 4),
        "contributions": {f.value: round(v, 4) for f, v in evaluation.contributions.items()},
        "shares_pct": {f.value: round(v, 1) for f, v in evaluation.shares.items()},
        "elevated": [f.value for f in evaluation.elevated.factors],
        "waist_is_high": evaluation.elevated.waist_is_high,
        "what_if_pp": {
            f.value: [round(down, 3), round(up, 3)]
            for f, (down, up) in model.what_if_deltas(record).items()
        },
    }

def cmd_evaluate(args: argparse.Namespace, config: ModelConfig) -> int:
    mode = UnitMode.SI if args.metric else UnitMode.US
    data = {f.value: getattr(args, f.value) for f in RiskField
            if getattr(args, f.value) is not None}
    record = _record_from_mapping(data, config, mode)

    summary = evaluation_summary(RiskModel(config), record)
    print(json.dumps(summary, indent=2))
    return 0

def cmd_scenarios(args: argparse.Namespace, config: ModelConfig) -> int:
    """Evaluate a list of records as successive snapshots of one session"""
    data = load_yaml(args.path)
    scenarios: List[Dict[str, Any]] = data.get("scenarios", [])
    if not scenarios:
        raise CalculatorError(
            error_code=ErrorCode.CFG_INVALID_CONFIG,
            message=f"No scenarios found in {args.path}",
            details={"path": args.path}
        )

    model = RiskModel(config)
    session = SessionState()
    mode = UnitMode.SI if args.metric else UnitMode.US

    for scenario in scenarios:
        record = _record_from_mapping(scenario, config, mode)
        si_record = model.to_si(record)
        session.record_snapshot(model.compute_probability(si_record) * 100, si_record)

    frame = session.history.to_frame()
    print(frame.drop(columns=["timestamp"]).to_string(index=False, float_format=lambda v: f"{v:.2f}"))
    if len(scenarios) > len(session.history):
        print(f"\n{len(scenarios) - len(session.history)} oldest scenario(s) dropped "
              f"(history keeps {session.history.capacity})")
    return 0

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='ARIC Diabetes Risk Calculator')
    parser.add_argument('--config', help='Model configuration YAML')
    parser.add_argument('--metric', action='store_true', help='Inputs are SI units (cm, mmol/L)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')

    subparsers = parser.add_subparsers(dest='command', required=True)

    evaluate = subparsers.add_parser('evaluate', help='Evaluate one patient')
    for risk_field in RiskField:
        evaluate.add_argument(f"--{risk_field.value.replace('_', '-')}", dest=risk_field.value,
                              type=float, help=f'{risk_field.value} (default: reset value)')

    scenarios = subparsers.add_parser('scenarios', help='Evaluate a YAML list of scenarios as a timeline')
    scenarios.add_argument('path', help="YAML file with a top-level 'scenarios' list")

    return parser

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        config = load_model_config(args.config, required=bool(args.config))
        if args.command == 'evaluate':
            return cmd_evaluate(args, config)
        return cmd_scenarios(args, config)

    except CalculatorError as e:
        log_error(logger, e)
        print(e.to_json(), file=sys.stderr)
        return 1

if __name__ == "__main__":
    exit(main())
