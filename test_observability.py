"""
Observability and Configuration Validation Test

This test validates the ambient stack:
1. Correlation context is set, merged and restored per request
2. Structured (JSON) and human-readable formatters include correlation IDs
3. configure_logging attaches one engine handler per logger
4. Settings are read from the environment and invalid values are rejected
5. Engine errors serialize to structured dicts
"""

import json
import logging

import pytest

from core.config import DEFAULT_MAX_BULK_LINES, DEFAULT_MAX_INVOICE_BYTES, get_settings, load_settings
from core.errors import DocumentFormatError, NotFoundError, ValidationError


ENV_VARS = (
    "ORDER_ENGINE_MAX_BULK_LINES",
    "ORDER_ENGINE_MAX_INVOICE_BYTES",
    "ORDER_ENGINE_MATCHING_STRATEGY",
    "ORDER_ENGINE_LOG_LEVEL",
    "ORDER_ENGINE_LOG_JSON",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


def _record(name="reconciliation.engine", msg="Reconciliation complete", extra_fields=None):
    record = logging.LogRecord(name, logging.INFO, __file__, 1, msg, None, None)
    if extra_fields is not None:
        record.extra_fields = extra_fields
    return record


def test_observability_imports():
    """Verify all observability modules import correctly."""
    from core.observability import (
        get_logger, configure_logging,
        CorrelationContext, CorrelatedLogger,
        get_correlation_context, with_correlation,
    )
    assert CorrelationContext is not None
    assert isinstance(get_logger("bulk_request.test"), CorrelatedLogger)


class TestCorrelatedLogging:
    """Test structured logging with correlation IDs."""

    def test_correlation_context_creation(self):
        """Create correlation context; None values are dropped."""
        from core.observability.logging import CorrelationContext

        ctx = CorrelationContext(order_id="PED-1042", invoice_number="4512")
        assert ctx.to_dict() == {"order_id": "PED-1042", "invoice_number": "4512"}

        merged = ctx.merge(operation="reconcile", invoice_number=None)
        assert merged.operation == "reconcile"
        assert merged.invoice_number == "4512"

    def test_context_var_isolation(self):
        """Nested contexts merge and are restored on exit."""
        from core.observability.logging import get_correlation_context, with_correlation

        assert get_correlation_context().order_id is None
        with with_correlation(order_id="PED-1", request_id="req-1"):
            with with_correlation(operation="bulk_add"):
                ctx = get_correlation_context()
                assert ctx.order_id == "PED-1"
                assert ctx.operation == "bulk_add"
            assert get_correlation_context().operation is None
        assert get_correlation_context().order_id is None

    def test_structured_formatter_json_output(self):
        """JSON lines carry message, correlation IDs and extra fields."""
        from core.observability.logging import StructuredFormatter, with_correlation

        with with_correlation(order_id="PED-1042", invoice_number="4512"):
            output = StructuredFormatter().format(_record(extra_fields={"completos": 1}))

        data = json.loads(output)
        assert data["level"] == "INFO"
        assert data["logger"] == "reconciliation.engine"
        assert data["message"] == "Reconciliation complete"
        assert data["order_id"] == "PED-1042"
        assert data["invoice_number"] == "4512"
        assert data["completos"] == 1
        assert data["timestamp"].endswith("Z")

    def test_human_readable_formatter(self):
        """Plain lines show the correlation IDs and key=value extras."""
        from core.observability.logging import HumanReadableFormatter, with_correlation

        with with_correlation(order_id="PED-1042", invoice_number="4512"):
            output = HumanReadableFormatter().format(_record(extra_fields={"items": 2}))

        assert "[INFO ]" in output
        assert "[PED-1042/nf:4512]" in output
        assert output.endswith("items=2")

    def test_human_readable_without_context(self):
        """No correlation IDs renders as a dash."""
        from core.observability.logging import HumanReadableFormatter

        output = HumanReadableFormatter().format(_record())
        assert "[-]: Reconciliation complete" in output

    def test_configure_logging_replaces_engine_handler(self):
        """Reconfiguring swaps the engine handler instead of stacking them."""
        from core.observability.logging import (
            ENGINE_LOGGERS, HumanReadableFormatter, StructuredFormatter, configure_logging,
        )

        configure_logging(level=logging.DEBUG, json_format=True, force=True)
        try:
            for name in ENGINE_LOGGERS:
                logger = logging.getLogger(name)
                engine_handlers = [h for h in logger.handlers if getattr(h, "_order_engine", False)]
                assert len(engine_handlers) == 1
                assert isinstance(engine_handlers[0].formatter, StructuredFormatter)
                assert logger.level == logging.DEBUG
                assert logger.propagate is False
        finally:
            configure_logging(level=logging.INFO, json_format=False, force=True)

        handlers = logging.getLogger("allocation").handlers
        assert isinstance(handlers[-1].formatter, HumanReadableFormatter)

    def test_logger_accepts_extra_fields_and_exc_info(self):
        """Extra fields and exceptions pass through the wrapper."""
        from core.observability.logging import get_logger

        records = []

        class _Collect(logging.Handler):
            def emit(self, record):
                records.append(record)

        handler = _Collect()
        logger = get_logger("reconciliation.test_wrapper")
        logging.getLogger("reconciliation.test_wrapper").addHandler(handler)
        try:
            logger.info("hello", extra_fields={"a": 1})
            try:
                raise DocumentFormatError("broken")
            except DocumentFormatError:
                logger.exception("failed")
        finally:
            logging.getLogger("reconciliation.test_wrapper").removeHandler(handler)

        assert records[0].extra_fields == {"a": 1}
        assert records[1].levelno == logging.ERROR
        assert records[1].exc_info[0] is DocumentFormatError


class TestSettings:
    """Test environment configuration."""

    def test_defaults(self, clean_env):
        """Unset variables fall back to the defaults."""
        settings = load_settings()
        assert settings.max_bulk_lines == DEFAULT_MAX_BULK_LINES == 50
        assert settings.max_invoice_bytes == DEFAULT_MAX_INVOICE_BYTES == 10 * 1024 * 1024
        assert settings.matching_strategy == "description_prefix"
        assert settings.log_level == logging.INFO
        assert settings.log_json is False

    def test_overrides(self, clean_env):
        """Environment values are parsed."""
        clean_env.setenv("ORDER_ENGINE_MAX_BULK_LINES", "10")
        clean_env.setenv("ORDER_ENGINE_MAX_INVOICE_BYTES", "2048")
        clean_env.setenv("ORDER_ENGINE_MATCHING_STRATEGY", "Supplier_Code")
        clean_env.setenv("ORDER_ENGINE_LOG_LEVEL", "debug")
        clean_env.setenv("ORDER_ENGINE_LOG_JSON", "yes")

        settings = load_settings()
        assert settings.max_bulk_lines == 10
        assert settings.max_invoice_bytes == 2048
        assert settings.matching_strategy == "supplier_code"
        assert settings.log_level == logging.DEBUG
        assert settings.log_json is True

    @pytest.mark.parametrize("name,value", [
        ("ORDER_ENGINE_MAX_BULK_LINES", "abc"),
        ("ORDER_ENGINE_MAX_BULK_LINES", "0"),
        ("ORDER_ENGINE_MAX_INVOICE_BYTES", "-5"),
        ("ORDER_ENGINE_MATCHING_STRATEGY", "fuzzy"),
        ("ORDER_ENGINE_LOG_LEVEL", "LOUD"),
        ("ORDER_ENGINE_LOG_JSON", "maybe"),
    ])
    def test_invalid_values(self, clean_env, name, value):
        """Bad values raise ValueError naming the variable."""
        clean_env.setenv(name, value)
        with pytest.raises(ValueError) as exc:
            load_settings()
        assert name in str(exc.value)

    def test_settings_drive_bulk_limit(self, clean_env):
        """The configured limit applies when no override is passed."""
        from bulk_request import validate_format

        clean_env.setenv("ORDER_ENGINE_MAX_BULK_LINES", "2")
        get_settings.cache_clear()

        result = validate_format("A,1\nB,1\nC,1")
        assert len(result.requests) == 2
        assert len(result.errors) == 1


class TestErrors:
    """Test error serialization."""

    def test_validation_error(self):
        """Line details are included when known."""
        error = ValidationError("Quantity must be a positive integer", line_number=3, line="ABC 0", field="quantity")
        assert error.to_dict() == {
            "error_type": "ValidationError",
            "message": "Quantity must be a positive integer",
            "line_number": 3,
            "line": "ABC 0",
            "field": "quantity",
        }

    def test_not_found_error(self):
        """Line numbers are sorted into the message."""
        error = NotFoundError("XYZ", [4, 1])
        assert error.line_numbers == [1, 4]
        assert error.message == "Product XYZ not found in catalog (line 1, 4)"
        assert NotFoundError("XYZ").message == "Product XYZ not found in catalog"
