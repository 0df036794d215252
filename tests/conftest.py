import logging
import os

import pytest

from src.materialize_engine.execute.psycopg_executor import PsycopgExecutor

# Names of fixtures that require a live Materialize instance
_STORE_FIXTURE_NAME = "store_fixture"


def quiet_psycopg() -> None:
    """Turn down driver logging during the test context."""
    logging.getLogger("psycopg").setLevel(logging.WARN)


@pytest.fixture(scope="session")
def store_fixture():
    quiet_psycopg()

    dsn = os.getenv("MZ_TEST_DSN")
    if not dsn:
        pytest.skip("MZ_TEST_DSN is not set")

    executor = PsycopgExecutor.connect(dsn)

    yield executor

    executor.close()


def _mark_tests_using_store_fixture(tests: list[pytest.Item]) -> None:
    """
    Adds the `requires_store` marker to tests that use the live-store fixture.

    :param tests: list of tests collected by `pytest`
    """
    for test in tests:
        if _STORE_FIXTURE_NAME in getattr(test, "fixturenames", ()):
            test.add_marker(pytest.mark.requires_store)


def _skip_store_tests(test: pytest.Item) -> None:
    """
    Tell `pytest` to skip tests that require a live store.

    Not invoked when `--include-store-tests` is given.

    :param test: test collected by `pytest`
    """
    requires_store_markers = list(test.iter_markers(name="requires_store"))

    if requires_store_markers:
        pytest.skip("Skipped tests that require a Materialize instance")


def pytest_addoption(parser: pytest.Parser):
    parser.addoption(
        "--include-store-tests",
        action="store_true",
        default=False,
        help="Run tests against the Materialize instance at MZ_TEST_DSN.",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]):
    if not config.getoption("--include-store-tests"):
        _mark_tests_using_store_fixture(tests=items)


def pytest_runtest_setup(item: pytest.Item):
    if not item.config.getoption("--include-store-tests"):
        _skip_store_tests(test=item)
