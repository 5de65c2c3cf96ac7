"""Assertions over the API response envelope and TokenMeter exceptions."""

from typing import Any

from httpx import Response

from src.api.core.exceptions.base import TokenMeterException
from src.api.core.messages import MessageCode


def _assert_envelope(
    response: Response, message_code: MessageCode, status: int
) -> dict[str, Any]:
    assert response.status_code == status, (
        f"Expected status {status}, got {response.status_code}. "
        f"Response: {response.text}"
    )
    body = response.json()
    assert body.get("message_code") == message_code.value, (
        f"Expected message_code {message_code.value}, "
        f"got {body.get('message_code')}"
    )
    assert "message" in body
    return body


def assert_success_response(
    response: Response,
    expected_message_code: MessageCode = MessageCode.SUCCESS,
    expected_status: int = 200,
    data_assertions: dict[str, Any] | None = None,
) -> Any:
    """Check the envelope and return ``data``.

    ``data_assertions`` keys may use dots for nested fields ("user.email").
    """
    data = _assert_envelope(response, expected_message_code, expected_status).get(
        "data"
    )
    for field, expected_value in (data_assertions or {}).items():
        current = data
        for part in field.split("."):
            current = current[part]
        assert (
            current == expected_value
        ), f"Expected {field} to be {expected_value}, got {current}"
    return data


def assert_error_response(
    response: Response, expected_message_code: MessageCode, expected_status: int
) -> dict[str, Any]:
    """Check the error envelope and return the whole body, details included."""
    return _assert_envelope(response, expected_message_code, expected_status)


def assert_validation_error(response: Response) -> dict[str, Any]:
    return assert_error_response(response, MessageCode.INVALID_INPUT, 422)


def assert_permission_error(response: Response) -> dict[str, Any]:
    return assert_error_response(
        response, MessageCode.AUTH_INSUFFICIENT_ROLE_PERMISSIONS, 403
    )


def assert_authentication_error(response: Response) -> dict[str, Any]:
    return assert_error_response(response, MessageCode.AUTH_REQUIRED, 401)


def assert_tokenmeter_exception(
    exception: TokenMeterException,
    expected_message_code: MessageCode,
    expected_status: int | None = None,
) -> None:
    assert exception.message_code == expected_message_code, (
        f"Expected message_code {expected_message_code}, "
        f"got {exception.message_code}"
    )
    if expected_status:
        assert exception.status_code == expected_status


class ResponseHelper:
    @staticmethod
    def assert_paginated_response(
        response: Response,
        expected_total: int | None = None,
        expected_limit: int | None = None,
    ) -> list[Any]:
        """Check the Paginated shape and return its items."""
        data = assert_success_response(response)
        assert set(data) == {"items", "pagination"}

        pagination = data["pagination"]
        if expected_total is not None:
            assert pagination["total"] == expected_total, pagination
        if expected_limit is not None:
            assert pagination["limit"] == expected_limit, pagination
        return data["items"]
