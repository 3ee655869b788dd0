"""
apishell: Error Logger Unit Tests
=================================

What:  Tests for the logging stage of the error chain.

What we test:
    ✅ Log level follows the status class (5xx ERROR, 4xx WARNING)
    ✅ Request details logged for >= 400 except 404 and 503
    ✅ Stack traces logged iff status >= 500 and != 503
    ✅ Headers/params are redacted, body is logged verbatim
    ✅ The error is always forwarded unchanged
    ✅ Logging failures never escape the middleware
"""

import logging

import pytest

from apishell.exceptions import RequestError
from apishell.middleware.error_logger import (
    ErrorLoggerPolicy,
    create_error_logger,
    default_log_request,
    default_log_stack_trace,
    get_log_level,
)
from apishell.middleware.redaction import SLICE_SUFFIX


def logged_formats(log):
    """Format strings passed to log.log(level, fmt, ...), in call order."""
    return [c.args[1] for c in log.log.call_args_list]


def logged_request_details(log):
    return [f for f in logged_formats(log) if f.startswith("Request ")]


class TestDefaultPolicy:

    @pytest.mark.parametrize("status", [400, 401, 403, 409, 422, 429, 500, 502, 504])
    def test_request_logged(self, status):
        assert default_log_request(status) is True

    @pytest.mark.parametrize("status", [200, 302, 399, 404, 503])
    def test_request_not_logged(self, status):
        assert default_log_request(status) is False

    @pytest.mark.parametrize("status", [500, 501, 502, 504, 599])
    def test_stack_trace_logged(self, status):
        assert default_log_stack_trace(status) is True

    @pytest.mark.parametrize("status", [400, 404, 499, 503])
    def test_stack_trace_not_logged(self, status):
        assert default_log_stack_trace(status) is False

    def test_log_level(self):
        assert get_log_level(500) == logging.ERROR
        assert get_log_level(503) == logging.ERROR
        assert get_log_level(404) == logging.WARNING
        assert get_log_level(400) == logging.WARNING


class TestErrorLogger:

    @pytest.mark.asyncio
    async def test_forwards_error_unchanged(self, error_log, make_request, call_next):
        handler = create_error_logger(error_log)
        exc = RequestError("bad input", status=400)

        response = await handler(exc, make_request(), call_next)

        call_next.assert_awaited_once_with(exc)
        assert response.status_code == 599

    @pytest.mark.asyncio
    async def test_missing_status_is_treated_as_500(self, error_log, make_request, call_next):
        handler = create_error_logger(error_log)

        await handler(RuntimeError("boom"), make_request(), call_next)

        levels = {c.args[0] for c in error_log.log.call_args_list}
        assert levels == {logging.ERROR}
        assert len(logged_request_details(error_log)) == 3
        assert any("exc_info" in c.kwargs for c in error_log.log.call_args_list)

    @pytest.mark.asyncio
    async def test_client_error_logs_details_without_trace(
        self, error_log, make_request, call_next
    ):
        handler = create_error_logger(error_log)

        await handler(RequestError("nope", status=403), make_request(), call_next)

        levels = {c.args[0] for c in error_log.log.call_args_list}
        assert levels == {logging.WARNING}
        assert len(logged_request_details(error_log)) == 3
        assert not any("exc_info" in c.kwargs for c in error_log.log.call_args_list)
        last = error_log.log.call_args_list[-1]
        assert last.args[1:] == ("%s: %s", "RequestError", "nope")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [404, 503])
    async def test_quiet_statuses_skip_request_details(
        self, error_log, make_request, call_next, status
    ):
        handler = create_error_logger(error_log)

        await handler(RequestError("quiet", status=status), make_request(), call_next)

        assert logged_request_details(error_log) == []
        assert not any("exc_info" in c.kwargs for c in error_log.log.call_args_list)
        assert error_log.log.call_count == 1

    @pytest.mark.asyncio
    async def test_headers_and_params_redacted_body_verbatim(
        self, error_log, make_request, call_next
    ):
        handler = create_error_logger(error_log)
        long_value = "t" * 1500
        request = make_request(
            headers={"authorization": long_value, "accept": "application/json"},
            path_params={"item_id": long_value},
            body={"payload": long_value},
        )

        await handler(RequestError("conflict", status=409), request, call_next)

        by_format = {c.args[1]: c.args[2] for c in error_log.log.call_args_list[:3]}
        headers = by_format["Request headers: %s"]
        assert headers["authorization"] == "t" * 1000 + SLICE_SUFFIX
        assert headers["accept"] == "application/json"
        assert by_format["Request parameters: %s"] == {"item_id": "t" * 1000 + SLICE_SUFFIX}
        assert by_format["Request body: %s"] == {"payload": long_value}

    @pytest.mark.asyncio
    async def test_custom_policy(self, error_log, make_request, call_next):
        policy = ErrorLoggerPolicy(
            log_request=lambda status: False,
            log_stack_trace=lambda status: True,
        )
        handler = create_error_logger(error_log, policy)

        await handler(RequestError("x", status=400), make_request(), call_next)

        assert logged_request_details(error_log) == []
        assert "exc_info" in error_log.log.call_args_list[-1].kwargs

    def test_policy_is_immutable(self):
        policy = ErrorLoggerPolicy()
        with pytest.raises(AttributeError):
            policy.log_request = lambda status: False

    @pytest.mark.asyncio
    async def test_logging_failure_does_not_escape(self, error_log, make_request, call_next):
        def broken(status):
            raise ZeroDivisionError("policy exploded")

        handler = create_error_logger(error_log, ErrorLoggerPolicy(log_request=broken))
        exc = RequestError("x", status=400)

        response = await handler(exc, make_request(), call_next)

        error_log.exception.assert_called_once()
        call_next.assert_awaited_once_with(exc)
        assert response.status_code == 599

    @pytest.mark.asyncio
    async def test_writes_to_real_logger(self, make_request, call_next, caplog):
        log = logging.getLogger("apishell.tests.errors")
        handler = create_error_logger(log)

        with caplog.at_level(logging.WARNING, logger="apishell.tests.errors"):
            await handler(ValueError("kaboom"), make_request(), call_next)

        trace_records = [r for r in caplog.records if r.exc_info]
        assert len(trace_records) == 1
        assert trace_records[0].levelno == logging.ERROR
        assert "kaboom" in caplog.text
