"""Unit tests for exception handling system.

Tests both the exception hierarchy and the exception handler utilities,
including negative tests to verify correct exceptions are raised.
"""

import json
import logging

import pytest

from ops_assistant.common.exception_handler import (
    format_exception_json,
    get_error_code,
    is_retryable,
    log_exception,
)
from ops_assistant.core.domain.exceptions import (
    ConfigurationError,
    EmbeddingAPIError,
    EmbeddingError,
    EmbeddingTimeoutError,
    EmptyQueryError,
    InvalidConfigurationError,
    LLMConnectionError,
    LLMError,
    LLMGenerationError,
    LLMRateLimitError,
    LLMTimeoutError,
    MissingAPIKeyError,
    OpsAssistantError,
    QueryTooLongError,
    RequestCancelledError,
    RetrievalError,
    SourceTimeoutError,
    SourceUnavailableError,
    ValidationError,
)

# Apply @pytest.mark.unit to all tests in this module
pytestmark = pytest.mark.unit

ALL_EXCEPTIONS = [
    OpsAssistantError,
    ConfigurationError,
    MissingAPIKeyError,
    InvalidConfigurationError,
    EmbeddingError,
    EmbeddingAPIError,
    EmbeddingTimeoutError,
    LLMError,
    LLMConnectionError,
    LLMRateLimitError,
    LLMGenerationError,
    LLMTimeoutError,
    RetrievalError,
    SourceUnavailableError,
    SourceTimeoutError,
    ValidationError,
    EmptyQueryError,
    QueryTooLongError,
    RequestCancelledError,
]


class TestExceptionHierarchy:
    """Tests for the exception class hierarchy."""

    def test_ops_assistant_error_is_base(self):
        """OpsAssistantError should be the base for all custom exceptions."""
        for exc_type in ALL_EXCEPTIONS:
            assert issubclass(exc_type, OpsAssistantError)

    def test_source_timeout_is_a_source_failure(self):
        assert issubclass(SourceTimeoutError, SourceUnavailableError)
        assert issubclass(SourceUnavailableError, RetrievalError)

    def test_llm_errors_inherit_from_llm_error(self):
        for exc_type in (LLMConnectionError, LLMRateLimitError, LLMGenerationError, LLMTimeoutError):
            assert issubclass(exc_type, LLMError)

    def test_validation_errors(self):
        assert issubclass(EmptyQueryError, ValidationError)
        assert issubclass(QueryTooLongError, ValidationError)

    def test_config_errors_inherit_from_configuration(self):
        assert issubclass(MissingAPIKeyError, ConfigurationError)
        assert issubclass(InvalidConfigurationError, ConfigurationError)


class TestExceptionCreation:
    """Tests for creating and using exceptions."""

    def test_basic_exception_creation(self):
        """Basic exception should have message and error code."""
        exc = OpsAssistantError("Test error message")
        assert str(exc) == "Test error message"
        assert exc.message == "Test error message"
        assert exc.error_code == "OPS_ERR_001"

    def test_exception_with_context(self):
        """Exception should store extra context."""
        exc = SourceTimeoutError("Source timed out", context={"source": "wiki", "timeout": 8})
        assert exc.extra_context["source"] == "wiki"
        assert exc.extra_context["timeout"] == 8

    def test_exception_with_cause(self):
        """Exception should chain underlying cause."""
        original = ConnectionError("Network unreachable")
        exc = LLMConnectionError("Connection failed", cause=original)
        assert exc.cause is original

    def test_exception_captures_location(self):
        """Exception should capture file, method, and line number."""
        exc = OpsAssistantError("Test")
        assert exc.location.file_name == "test_exceptions.py"
        assert exc.location.method_name == "test_exception_captures_location"
        assert exc.location.class_name == "TestExceptionCreation"
        assert exc.location.line_number > 0

    def test_each_exception_has_unique_error_code(self):
        """Each exception type should have a unique error code."""
        codes = {exc_type("test").error_code for exc_type in ALL_EXCEPTIONS}
        assert len(codes) == len(ALL_EXCEPTIONS)

    def test_cancellation_code(self):
        assert RequestCancelledError("gone").error_code == "OPS_REQ_001"


class TestExceptionToDict:
    """Tests for exception JSON serialization."""

    def test_to_dict_basic_structure(self):
        exc = SourceUnavailableError("Test error")
        result = exc.to_dict()

        assert result["error"] == {
            "type": "SourceUnavailableError",
            "code": "OPS_RET_002",
            "message": "Test error",
        }
        assert set(result["location"]) == {"class", "method", "file", "line", "timestamp"}

    def test_to_dict_includes_context_and_cause(self):
        exc = ValidationError("Invalid input", cause=ValueError("Bad value"), context={"field": "q"})
        result = exc.to_dict()

        assert result["context"] == {"field": "q"}
        assert result["cause"] == {"type": "ValueError", "message": "Bad value"}

    def test_to_dict_excludes_trace_by_default(self):
        exc = ValidationError("Invalid input", cause=ValueError("Bad value"))
        assert "stack_trace" not in exc.to_dict()

    def test_to_dict_includes_trace_when_raised_from_handler(self):
        try:
            raise ValueError("Bad value")
        except ValueError as e:
            exc = ValidationError("Invalid input", cause=e)

        assert "stack_trace" in exc.to_dict(include_trace=True)

    def test_to_dict_is_json_serializable(self):
        exc = EmbeddingTimeoutError("Timed out", context={"timeout": 10.0, "model": "gemini"})
        assert isinstance(json.dumps(exc.to_dict()), str)


class TestExceptionHandler:
    """Tests for exception handler utilities."""

    def test_format_custom_exception(self):
        result = format_exception_json(LLMRateLimitError("Test error", context={"model": "x"}))
        assert result["error"]["type"] == "LLMRateLimitError"
        assert result["error"]["code"] == "OPS_LLM_003"

    def test_format_standard_exception(self):
        try:
            raise ValueError("Standard error")
        except ValueError as e:
            result = format_exception_json(e)

        assert result["error"]["type"] == "ValueError"
        assert result["error"]["code"] == "PYTHON_ERR"
        assert result["error"]["message"] == "Standard error"
        assert result["location"]["method"] == "test_format_standard_exception"

    def test_format_adds_extra_context(self):
        exc = SourceUnavailableError("Test", context={"source": "wiki"})
        result = format_exception_json(exc, extra_context={"request_id": "abc123"})

        assert result["context"]["source"] == "wiki"
        assert result["context"]["request_id"] == "abc123"

    def test_get_error_code(self):
        assert get_error_code(LLMRateLimitError("test")) == "OPS_LLM_003"
        assert get_error_code(EmptyQueryError("test")) == "OPS_VAL_002"
        assert get_error_code(ValueError("test")) == "PYTHON_ERR"

    def test_log_exception_writes_json(self, caplog):
        log = logging.getLogger("ops_assistant.tests")
        with caplog.at_level(logging.WARNING, logger="ops_assistant.tests"):
            log_exception(
                SourceTimeoutError("slow", context={"timeout": 8}),
                log=log,
                level=logging.WARNING,
                extra_context={"source": "wiki"},
            )

        payload = json.loads(caplog.records[-1].getMessage())
        assert caplog.records[-1].levelno == logging.WARNING
        assert payload["error"]["code"] == "OPS_RET_003"
        assert payload["context"] == {"timeout": 8, "source": "wiki"}
        assert caplog.records[-1].error_code == "OPS_RET_003"


class TestRetryability:
    """Which chat completion failures are retried."""

    @pytest.mark.parametrize(
        "exc",
        [
            LLMRateLimitError("quota"),
            LLMConnectionError("reset"),
            LLMTimeoutError("slow"),
            ConnectionError("reset"),
            TimeoutError(),
        ],
    )
    def test_transient_failures_are_retryable(self, exc):
        assert is_retryable(exc)

    @pytest.mark.parametrize(
        "exc",
        [
            LLMGenerationError("blocked"),
            LLMError("bad request"),
            MissingAPIKeyError("no key"),
            ValueError("bad"),
        ],
    )
    def test_permanent_failures_are_not_retryable(self, exc):
        assert not is_retryable(exc)


class TestNegativeScenarios:
    """Negative tests to verify exceptions are raised correctly."""

    def test_missing_api_key_raises_error(self):
        from ops_assistant.adapters.outbound.gemini import GeminiChatAdapter

        with pytest.raises(MissingAPIKeyError):
            GeminiChatAdapter(api_key="", model="test")._get_client()

    def test_missing_embedding_key_raises_error(self):
        from ops_assistant.adapters.outbound.gemini import GeminiEmbeddingAdapter

        with pytest.raises(MissingAPIKeyError) as exc_info:
            GeminiEmbeddingAdapter(api_key="")._get_client()
        assert exc_info.value.extra_context["model"] == "gemini-embedding-001"

    def test_exception_context_preserved(self):
        try:
            try:
                raise ConnectionError("Network down")
            except Exception as e:
                raise SourceUnavailableError(
                    "Failed to load", cause=e, context={"source": "wiki", "attempt": 3}
                ) from e
        except SourceUnavailableError as exc:
            assert exc.extra_context["attempt"] == 3
            assert isinstance(exc.cause, ConnectionError)


class TestExceptionCatchPatterns:
    """Tests for exception catching patterns."""

    def test_catch_by_base_class(self):
        for exc in (SourceTimeoutError("test"), LLMRateLimitError("test"), ValidationError("test")):
            try:
                raise exc
            except OpsAssistantError as caught:
                assert caught.error_code.startswith("OPS_")

    def test_catch_llm_errors(self):
        for exc in (LLMConnectionError("test"), LLMRateLimitError("test"), LLMTimeoutError("test")):
            try:
                raise exc
            except LLMError as caught:
                assert "OPS_LLM" in caught.error_code
