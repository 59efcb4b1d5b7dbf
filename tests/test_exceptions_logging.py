"""
Tests for structured errors and logging helpers.
"""

import json
import logging
from unittest.mock import Mock

import pytest

from shredmate_shared.exceptions import (
    ClientError, ConfigurationError, ErrorCode, ErrorSeverity, RecoveryAction,
    ShredMateError, TokenStorageError, handle_exception
)
from shredmate_shared.logging_config import (
    AuditEventType, AuditLogger, DetailedFormatter, StructuredFormatter, log_structured_error
)


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="shredmate_client.api_client", level=logging.ERROR, pathname=__file__,
        lineno=1, msg="Request failed", args=(), exc_info=None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestClientError:
    """Test the typed client error."""

    def test_equality_by_kind_status_and_reason(self):
        assert ClientError.request_failed(404) == ClientError.request_failed(404)
        assert ClientError.request_failed(404) != ClientError.request_failed(500)
        assert ClientError.transport_error("a") != ClientError.transport_error("b")
        assert ClientError.unauthorized() == ClientError.unauthorized("other detail")
        assert len({ClientError.no_data(), ClientError.no_data()}) == 1

    def test_defaults_per_kind(self):
        error = ClientError.session_expired()

        assert error.severity == ErrorSeverity.HIGH
        assert error.recovery_actions == [RecoveryAction.RELOGIN]
        assert error.is_auth_failure
        assert not ClientError.request_failed(500).is_auth_failure

    def test_status_and_reason_in_context(self):
        assert ClientError.request_failed(418).context["status_code"] == 418
        assert ClientError.transport_error("reset").context["reason"] == "reset"

    def test_to_dict(self):
        cause = ValueError("bad json")
        response = ClientError.decoding_failed(cause).to_dict()

        assert response["error"]["code"] == ErrorCode.DECODING_FAILED.value
        assert response["error"]["cause"] == {"type": "ValueError", "message": "bad json"}
        assert "timestamp" in response["error"]

    def test_repr(self):
        assert repr(ClientError.request_failed(401)) == "ClientError(REQUEST_FAILED, status_code=401)"


class TestHandleException:

    def test_structured_errors_pass_through(self):
        error = ConfigurationError("bad", config_key="server.timeout")
        assert handle_exception(error) is error

    def test_connection_errors_become_transport_errors(self):
        error = handle_exception(ConnectionRefusedError("refused"), context={"op": "login"})

        assert isinstance(error, ClientError)
        assert error.error_code == ErrorCode.TRANSPORT_ERROR
        assert error.context["op"] == "login"

    def test_permission_errors_become_storage_errors(self):
        assert isinstance(handle_exception(PermissionError("denied")), TokenStorageError)

    def test_unknown_errors(self):
        error = handle_exception(KeyError("x"))

        assert type(error) is ShredMateError
        assert error.error_code == ErrorCode.INTERNAL_UNEXPECTED_ERROR


class TestFormatters:

    def test_structured_formatter_renders_client_error(self):
        record = make_record(error_info=ClientError.request_failed(503), request_id="abc")

        entry = json.loads(StructuredFormatter().format(record))

        assert entry["level"] == "ERROR"
        assert entry["error"]["kind"] == "REQUEST_FAILED"
        assert entry["error"]["context"]["status_code"] == 503
        assert entry["extra"] == {"request_id": "abc"}

    def test_detailed_formatter_includes_recovery(self):
        output = DetailedFormatter().format(make_record(error_info=ClientError.session_expired()))

        assert "SESSION_EXPIRED" in output
        assert "relogin" in output

    def test_log_structured_error(self):
        logger = Mock()
        error = ClientError.no_data()

        log_structured_error(logger, error)

        logger.error.assert_called_once_with(error.message, extra={"error_info": error})


class TestAuditLogger:

    @pytest.fixture
    def audit(self):
        audit = AuditLogger()
        audit.logger = Mock()
        return audit

    def audit_info(self, audit):
        return audit.logger.info.call_args.kwargs["extra"]["audit_info"]

    def test_token_refresh_failure(self, audit):
        audit.log_token_refresh(success=False, waiters=3, failure_reason="rejected")

        info = self.audit_info(audit)
        assert info["event_type"] == AuditEventType.TOKEN_REFRESH.value
        assert info["result"] == "failure"
        assert info["context"] == {"waiters": 3, "failure_reason": "rejected"}

    def test_session_invalidated(self, audit):
        audit.log_session_invalidated("token refresh failed")

        info = self.audit_info(audit)
        assert info["event_type"] == "session_invalidated"
        assert "user_id" not in info

    def test_login(self, audit):
        audit.log_login("u1")
        assert self.audit_info(audit)["user_id"] == "u1"
