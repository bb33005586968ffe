#!/usr/bin/env python3
"""
Tests for the command line front end
"""

import json
import re
import pytest
import yaml
import sys
import os

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from diabetes_risk.cli import main, build_parser, _record_from_mapping
from diabetes_risk.schema import ModelConfig, UnitMode

def error_payload(stderr: str) -> dict:
    # Log lines may precede the JSON error document
    start = re.search(r"^\{", stderr, re.MULTILINE).start()
    return json.loads(stderr[start:])

class TestCli:
    """Test CLI commands"""

    def test_evaluate_defaults(self, capsys):
        assert main(["evaluate"]) == 0

        summary = json.loads(capsys.readouterr().out)
        assert summary["unit_mode"] == "us"
        assert 0 < summary["risk_pct"] < 100
        assert summary["elevated"] == ["chol_tri"]
        assert set(summary["contributions"]) == {
            "age", "race", "parent_hist", "sbp", "waist", "height",
            "fast_glu", "chol_hdl", "chol_tri"
        }
        down, up = summary["what_if_pp"]["fast_glu"]
        assert down < 0 < up

    def test_evaluate_metric_inputs(self, capsys):
        assert main(["--metric", "evaluate", "--fast-glu", "7.2", "--waist", "105"]) == 0

        summary = json.loads(capsys.readouterr().out)
        assert summary["unit_mode"] == "si"
        assert "fast_glu" in summary["elevated"]
        assert summary["waist_is_high"] is True

    def test_out_of_range_inputs_clamped(self, capsys):
        """Entries past the slider bounds evaluate as the bound itself"""
        assert main(["evaluate", "--age", "500", "--fast-glu", "10"]) == 0
        clamped = json.loads(capsys.readouterr().out)

        assert main(["evaluate", "--age", "80", "--fast-glu", "50"]) == 0
        bounded = json.loads(capsys.readouterr().out)

        assert clamped["risk_pct"] == bounded["risk_pct"]
        assert clamped["contributions"] == bounded["contributions"]

    def test_record_from_mapping_clamps_in_active_units(self):
        config = ModelConfig()
        record = _record_from_mapping({'fast_glu': 30.0, 'waist': 10}, config, UnitMode.SI)
        assert record.fast_glu == 16.7
        assert record.waist == 64
        assert record.unit_mode == UnitMode.SI

    def test_toggle_outside_zero_one_rejected(self, capsys):
        assert main(["evaluate", "--age", "500", "--race", "7"]) == 1
        error = error_payload(capsys.readouterr().err)
        assert error["error_code"] == "INPUT_005"
        assert error["details"]["fields"] == {"race": 7.0}

    def test_parser_option_names(self):
        args = build_parser().parse_args(["evaluate", "--parent-hist", "1", "--chol-hdl", "40"])
        assert args.parent_hist == 1.0
        assert args.chol_hdl == 40.0
        assert args.age is None

    def test_missing_config_file(self, tmp_path, capsys):
        code = main(["--config", str(tmp_path / "absent.yaml"), "evaluate"])
        assert code == 1

        error = error_payload(capsys.readouterr().err)
        assert error["error_code"] == "CFG_001"

    def test_scenarios(self, tmp_path, capsys):
        path = tmp_path / "visits.yaml"
        with open(path, 'w') as f:
            yaml.dump({'scenarios': [{'age': 45}, {'age': 55, 'fast_glu': 110}]}, f)

        assert main(["scenarios", str(path)]) == 0

        out = capsys.readouterr().out
        assert "risk_pct" in out
        assert "timestamp" not in out
        assert "dropped" not in out

    def test_scenarios_over_capacity(self, tmp_path, capsys):
        path = tmp_path / "visits.yaml"
        with open(path, 'w') as f:
            yaml.dump({'scenarios': [{'age': 20 + i} for i in range(22)]}, f)

        assert main(["scenarios", str(path)]) == 0
        assert "2 oldest scenario(s) dropped" in capsys.readouterr().out

    def test_scenarios_unknown_field(self, tmp_path, capsys):
        path = tmp_path / "visits.yaml"
        with open(path, 'w') as f:
            yaml.dump({'scenarios': [{'bmi': 31}]}, f)

        assert main(["scenarios", str(path)]) == 1
        assert error_payload(capsys.readouterr().err)["error_code"] == "INPUT_002"

    def test_scenario_entry_not_a_mapping(self, tmp_path, capsys):
        path = tmp_path / "visits.yaml"
        path.write_text("scenarios: [5]\n")

        assert main(["scenarios", str(path)]) == 1
        assert error_payload(capsys.readouterr().err)["error_code"] == "INPUT_005"

    def test_scenarios_empty(self, tmp_path, capsys):
        path = tmp_path / "visits.yaml"
        path.write_text("scenarios: []\n")

        assert main(["scenarios", str(path)]) == 1
        assert error_payload(capsys.readouterr().err)["error_code"] == "CFG_002"

if __name__ == "__main__":
    pytest.main([__file__])
