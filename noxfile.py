import nox

PYTHON_VERSION = "3.12"
PACKAGES = ["agents", "economy", "metrics", "simulation"]
MODULES = ["main.py", "config.py", "logger.py", "sim_clock.py"]
TARGETS = PACKAGES + MODULES
TEST_DIR = "tests"
EXCLUDES = ["build", ".nox", "__pycache__", "*.egg-info", "output", "tests/__pycache__"]

nox.options.sessions = ["lint", "tests"]


@nox.session(python=PYTHON_VERSION)
def lint(session: nox.Session) -> None:
    """Format, then lint and type-check the project."""
    session.install(".[dev]")
    session.run("black", *TARGETS, TEST_DIR)
    session.run("isort", *TARGETS, TEST_DIR)
    session.run("ruff", "check", *TARGETS, TEST_DIR)
    # tests are excluded from mypy in pyproject.toml
    session.run("mypy", *TARGETS)


@nox.session(python=PYTHON_VERSION)
def tests(session: nox.Session) -> None:
    """Run the pytest suite; extra args go to pytest (e.g. `-k ledger`)."""
    session.install(".[dev]")
    session.run("pytest", TEST_DIR, *session.posargs)


@nox.session(python=PYTHON_VERSION)
def format(session: nox.Session) -> None:
    """Rewrite sources and tests with Black and isort."""
    session.install("black", "isort")
    session.run("black", *TARGETS, TEST_DIR)
    session.run("isort", *TARGETS, TEST_DIR)


@nox.session(python=PYTHON_VERSION)
def vulture(session: nox.Session) -> None:
    """Dead code report; exit code 3 (unused code found) is not a failure."""
    session.install(".[dev]")
    session.run("vulture", *TARGETS, "--exclude", ",".join(EXCLUDES), success_codes=[0, 3])


@nox.session(python=PYTHON_VERSION)
def lizard(session: nox.Session) -> None:
    """Complexity report for the simulation core."""
    session.install(".[dev]")
    session.run("lizard", *PACKAGES, "--exclude", ",".join(EXCLUDES), "-C", "15")
