import io
import logging

import pytest
from rich.console import Console

from crsearch import QueryBuilder
from crsearch.logging_config import get_logger, setup_sdk_logging


def test_null_handler_silence(capsys):
    """Verifies that the logger is silent before setup_sdk_logging is called."""
    test_logger = get_logger("crsearch.test_silence")

    test_logger.warning("This should go into the void")

    captured = capsys.readouterr()
    assert captured.err == ""
    assert captured.out == ""


def test_package_has_null_handler():
    """Checks that the root crsearch logger defaults to a NullHandler."""
    handlers = get_logger().handlers
    assert any(isinstance(h, logging.NullHandler) for h in handlers), (
        "crsearch root logger should have a NullHandler by default to prevent 'no handler' warnings."
    )


def test_logs_are_generated_but_swallowed(caplog):
    test_logger = get_logger("crsearch.internal")

    with caplog.at_level(logging.DEBUG):
        test_logger.debug("Internal diagnostic message")

    assert "Internal diagnostic message" in caplog.text


# --- These override the NullHandler: must be called after the null_handler tests


def test_setup_clears_existing_handlers():
    """Verify that multiple calls do not duplicate handlers."""
    setup_sdk_logging(level="INFO", pretty=False)
    setup_sdk_logging(level="DEBUG", pretty=False)

    logger = get_logger()
    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG


def test_setup_uses_provided_console():
    """Verify the logger outputs to the specific console provided."""
    custom_output = io.StringIO()
    test_console = Console(file=custom_output, force_terminal=True)

    setup_sdk_logging(level="INFO", pretty=True, console=test_console)
    logger = get_logger()
    logger.info("Test Console Sync")

    output = custom_output.getvalue()
    assert "crsearch" in output
    assert "Test Console Sync" in output


def test_logger_isolation():
    """Ensure package logs do not propagate to the root logger."""
    setup_sdk_logging()
    logger = get_logger()

    assert logger.propagate is False


@pytest.fixture
def restore_package_logger():
    logger = get_logger()
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


def test_query_log_reaches_configured_handler(capsys, make_transport, restore_package_logger):
    """Verify a logged query is written once the package logging is set up."""
    setup_sdk_logging(level="DEBUG", pretty=False)

    transport = make_transport({"aggregations": {"filtered": {"doc_count": 0}}})
    QueryBuilder(transport).node_type("Acme.Site:Page").log("listing").execute()

    err = capsys.readouterr().err
    assert "Query Log (listing):" in err
    assert "Acme.Site:Page" in err
    assert "execution time" in err


def test_query_log_is_filtered_above_debug(capsys, make_transport, restore_package_logger):
    setup_sdk_logging(level="INFO", pretty=False)

    transport = make_transport({"aggregations": {"filtered": {"doc_count": 0}}})
    QueryBuilder(transport).log("listing").execute()

    assert "Query Log" not in capsys.readouterr().err
