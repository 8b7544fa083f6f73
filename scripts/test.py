from __future__ import annotations

import os
import subprocess
import sys
import tempfile
from pathlib import Path

import click

try:
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - Python < 3.11
    import tomli as tomllib  # type: ignore[no-redef]

PROJECT_ROOT = Path(__file__).resolve().parents[1]
COVERAGE_TARGET = "lib_kv_log"


def _build_default_env() -> dict[str, str]:
    """Return the base environment for subprocess execution."""
    pythonpath = os.pathsep.join(filter(None, [str(PROJECT_ROOT / "src"), os.environ.get("PYTHONPATH")]))
    return os.environ | {"PYTHONPATH": pythonpath}


DEFAULT_ENV = _build_default_env()


@click.command(help="Run lints, type-check and tests with coverage")
@click.option("--coverage", type=click.Choice(["on", "auto", "off"]), default="on")
@click.option("--verbose", "-v", is_flag=True, help="Print executed commands before running them")
def main(coverage: str, verbose: bool) -> None:
    env_verbose = os.getenv("TEST_VERBOSE", "").lower()
    if not verbose and env_verbose in {"1", "true", "yes", "on"}:
        verbose = True

    def _run(cmd: list[str], *, env: dict[str, str] | None = None, check: bool = True, label: str | None = None) -> int:
        display = " ".join(cmd)
        if label and not verbose:
            click.echo(f"[{label}] $ {display}")
        if verbose:
            click.echo(f"  $ {display}")
        merged_env = DEFAULT_ENV if env is None else DEFAULT_ENV | env
        code = subprocess.run(cmd, env=merged_env, cwd=PROJECT_ROOT, check=False).returncode
        if check and code != 0:
            raise SystemExit(code)
        return code

    click.echo("[1/4] Ruff lint")
    _run(["ruff", "check", "."], check=False)

    click.echo("[2/4] Import-linter contracts")
    _run([sys.executable, "-m", "lint_imports", "--config", "pyproject.toml"], check=False)

    click.echo("[3/4] Pyright type-check")
    _run(["pyright"], check=False)

    click.echo("[4/4] Pytest")
    if coverage == "on" or (coverage == "auto" and os.getenv("CI")):
        fail_under = _read_fail_under(PROJECT_ROOT / "pyproject.toml")
        with tempfile.TemporaryDirectory() as tmp:
            cov_file = Path(tmp) / ".coverage"
            click.echo(f"[coverage] file={cov_file}")
            _run(
                [
                    sys.executable,
                    "-m",
                    "pytest",
                    f"--cov={COVERAGE_TARGET}",
                    "--cov-report=term-missing",
                    f"--cov-fail-under={fail_under}",
                    "-vv",
                ],
                env={"COVERAGE_FILE": str(cov_file)},
                label="pytest",
            )
    else:
        click.echo("[coverage] disabled (set --coverage=on to force)")
        _run([sys.executable, "-m", "pytest", "-vv"], label="pytest-no-cov")
    click.echo("All checks passed")


def _read_fail_under(pyproject: Path) -> int:
    try:
        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        return int(data["tool"]["coverage"]["report"]["fail_under"])
    except (OSError, KeyError, ValueError, tomllib.TOMLDecodeError):
        return 80


if __name__ == "__main__":
    main()
