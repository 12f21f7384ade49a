#!/usr/bin/env python3
"""
Run the repo-pulse test suites.

    python run_tests.py                  # unit + component
    python run_tests.py unit --coverage
    python run_tests.py component -n 4 --junit
"""
import argparse
import subprocess
import sys

SUITES = {
    "unit": ["tests/unit/", "-m", "unit"],
    "component": ["tests/component/", "-m", "component"],
    "all": ["tests/"],
}


def build_command(args):
    cmd = [sys.executable, "-m", "pytest", *SUITES[args.suite]]
    if args.verbose:
        cmd.append("-v")
    if args.workers:
        cmd.extend(["-n", str(args.workers)])
    if args.coverage:
        # html report lands in htmlcov/
        cmd.extend(["--cov=repo_pulse", "--cov-report=term-missing", "--cov-report=html"])
    if args.junit:
        cmd.append("--junitxml=test-results.xml")
    return cmd


def main():
    parser = argparse.ArgumentParser(description="Run repo-pulse tests")
    parser.add_argument("suite", nargs="?", choices=sorted(SUITES), default="all")
    parser.add_argument("--coverage", action="store_true", help="measure repo_pulse coverage (pytest-cov)")
    parser.add_argument("--workers", "-n", type=int, help="parallel workers (pytest-xdist)")
    parser.add_argument("--junit", action="store_true", help="write test-results.xml")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args()

    cmd = build_command(args)
    print(f"$ {' '.join(cmd)}")
    # output streams straight through; pytest's exit code is ours
    sys.exit(subprocess.call(cmd))


if __name__ == "__main__":
    main()
