import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13"]

# Packages with C extensions that must be rebuilt per Python version.
# Poetry's wheel cache can serve a .so compiled for the wrong interpreter.
_C_EXT_PACKAGES = ["psycopg2"]


def _install(session: nox.Session) -> None:
    """Install the project with every extra into the nox virtualenv."""
    session.run("poetry", "install", "--all-extras", external=True)
    session.run(
        "pip",
        "install",
        "--force-reinstall",
        "--no-cache-dir",
        *_C_EXT_PACKAGES,
    )


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run full test suite across Python versions."""
    _install(session)
    session.run("pytest")


@nox.session(python=PYTHON_VERSIONS)
def tests_domain(session: nox.Session) -> None:
    """Run domain-layer tests only (no infrastructure required)."""
    _install(session)
    session.run("pytest", "tests/checkout/domain/")


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_bdd(session: nox.Session) -> None:
    """Run the Gherkin checkout scenarios."""
    _install(session)
    session.run("pytest", "-m", "bdd")


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_postgres(session: nox.Session) -> None:
    """Run application and integration tests against PostgreSQL.

    Expects the database from the production overlay of domain.toml to be
    reachable; tables are created before and dropped after the run.
    """
    _install(session)
    session.run("python", "src/manage.py", "setup-db", env={"PROTEAN_ENV": "production"})
    try:
        session.run("pytest", "--env", "production", "tests/checkout/application/", "tests/checkout/integration/")
    finally:
        session.run("python", "src/manage.py", "drop-db", env={"PROTEAN_ENV": "production"})
