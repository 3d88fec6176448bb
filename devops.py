"""Developer tasks for treectl.

Usage: uv run devops.py <task>
Tasks: fmt, lint, test, clean
"""

import subprocess
import sys
from collections.abc import Callable


def _run(commands: list[list[str]]) -> None:
    """Run commands in order, exiting with the status of the first failure."""
    for cmd in commands:
        try:
            subprocess.run(cmd, check=True)  # nosec: B603, B607
        except subprocess.CalledProcessError as e:
            print(f"Command failed: {' '.join(e.cmd)}", file=sys.stderr)
            sys.exit(e.returncode)


def format_code() -> None:
    """Format sources and apply safe lint fixes."""
    _run([["ruff", "format", "app", "tests"], ["ruff", "check", "--fix", "app", "tests"]])


def lint() -> None:
    """Check formatting and lint rules without changing files."""
    _run([["ruff", "format", "--check", "app", "tests"], ["ruff", "check", "app", "tests"]])


def test() -> None:
    """Run the unit tests."""
    _run([["uv", "run", "pytest", "-q", *sys.argv[2:]]])


def clean() -> None:
    """Remove caches and build artifacts."""
    _run(
        [
            ["find", ".", "-type", "d", "-name", "__pycache__", "-exec", "rm", "-rf", "{}", "+"],
            ["rm", "-rf", ".pytest_cache", ".ruff_cache", "dist", "build"],
        ]
    )


TASKS: dict[str, Callable[[], None]] = {
    "fmt": format_code,
    "lint": lint,
    "test": test,
    "clean": clean,
}


if __name__ == "__main__":
    if len(sys.argv) < 2 or sys.argv[1] not in TASKS:
        print(f"Usage: {sys.argv[0]} <{'|'.join(TASKS)}>", file=sys.stderr)
        sys.exit(1)
    TASKS[sys.argv[1]]()
