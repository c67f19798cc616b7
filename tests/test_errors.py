"""Tests for the error taxonomy and retry classification."""

from __future__ import annotations

import httpx
import pytest

from kieai_kit.errors import (
    BadRequestError,
    DecodingFailedError,
    ErrorAction,
    InvalidURLError,
    KieApiError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
    RequestFailedError,
    ResultTypeMismatchError,
    ServerError,
    TaskFailedError,
    TaskTimeoutError,
    UnauthorizedError,
    classify_error,
    error_from_status,
)


class TestErrorFromStatus:
    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (400, BadRequestError),
            (401, UnauthorizedError),
            (404, NotFoundError),
            (429, RateLimitedError),
            (500, ServerError),
            (502, ServerError),
            (599, ServerError),
            (403, RequestFailedError),
            (302, RequestFailedError),
        ],
    )
    def test_mapping(self, status: int, expected: type) -> None:
        assert isinstance(error_from_status(status, "body"), expected)

    def test_all_errors_share_base(self) -> None:
        assert isinstance(error_from_status(401), KieApiError)


class TestClassifyError:
    @pytest.mark.parametrize(
        "exc",
        [
            ServerError("boom", status_code=500),
            RateLimitedError(),
            DecodingFailedError("bad json"),
            NetworkError(httpx.ConnectError("refused")),
            RequestFailedError(507),
        ],
    )
    def test_retryable(self, exc: Exception) -> None:
        assert classify_error(exc) is ErrorAction.RETRY

    @pytest.mark.parametrize(
        "exc",
        [
            UnauthorizedError(),
            NotFoundError(),
            BadRequestError("nope"),
            TaskTimeoutError(10),
            TaskFailedError("bad prompt"),
            InvalidURLError("::"),
            RequestFailedError(403),
            ValueError("not an api error"),
        ],
    )
    def test_fatal(self, exc: Exception) -> None:
        assert classify_error(exc) is ErrorAction.FATAL


class TestMessages:
    def test_task_failed(self) -> None:
        assert str(TaskFailedError("content policy")) == "Task failed: content policy"

    def test_timeout_mentions_budget(self) -> None:
        assert str(TaskTimeoutError(30.0, 4)) == "Request timed out after 30s (4 attempts)"

    def test_unauthorized(self) -> None:
        assert "API key" in str(UnauthorizedError())

    def test_type_mismatch(self) -> None:
        err = ResultTypeMismatchError("video", "image")
        assert err.expected == "video"
        assert err.actual == "image"
        assert "expected video, got image" in str(err)
