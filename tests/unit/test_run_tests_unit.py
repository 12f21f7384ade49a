"""
Unit tests for the test runner's pytest command construction.
"""
from argparse import Namespace

from run_tests import build_command


def args(**overrides):
    values = {"suite": "all", "coverage": False, "workers": None, "junit": False, "verbose": False}
    values.update(overrides)
    return Namespace(**values)


def test_unit_suite_selects_marker():
    cmd = build_command(args(suite="unit"))
    assert cmd[1:] == ["-m", "pytest", "tests/unit/", "-m", "unit"]


def test_coverage_writes_single_html_report():
    cmd = build_command(args(coverage=True, workers=4, junit=True))
    assert "--cov=repo_pulse" in cmd
    assert [c for c in cmd if c.startswith("--cov-report=html")] == ["--cov-report=html"]
    assert cmd[cmd.index("-n") + 1] == "4"
    assert "--junitxml=test-results.xml" in cmd
