from __future__ import annotations

from typing import Any, Dict, Iterable

from estoque.ui_strings import error_message


class AppError(Exception):
    default_code = "system_error"
    default_message_key = "unexpected_error"
    default_http_status = 500
    default_critical = True

    def __init__(
        self,
        code: str | None = None,
        message_key: str | None = None,
        http_status: int | None = None,
        critical: bool | None = None,
        details: str | None = None,
        payload: Dict[str, Any] | None = None,
    ) -> None:
        self.code = (code or self.default_code).strip()
        self.message_key = (message_key or self.default_message_key).strip()
        self.http_status = int(http_status or self.default_http_status)
        self.critical = bool(self.default_critical if critical is None else critical)
        self.details = (details or "").strip() or None
        self.payload = dict(payload or {})
        super().__init__(self.details or self.code)

    def user_message(self) -> str:
        fallback = error_message("unexpected_error", "Nao foi possivel concluir a operacao.")
        return error_message(self.message_key, fallback)

    def to_response_payload(self, request_id: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "error": self.code,
            "message": self.user_message(),
            "request_id": request_id,
        }
        if self.payload:
            payload.update(self.payload)
        return payload


class UserActionError(AppError):
    default_code = "action_invalid"
    default_message_key = "action_invalid"
    default_http_status = 400
    default_critical = False


class ValidationError(UserActionError):
    default_code = "validation_error"
    default_message_key = "action_invalid"
    default_http_status = 400
    default_critical = False


class ConfirmationRequiredError(UserActionError):
    default_code = "confirmation_required"
    default_message_key = "confirmation_required"
    default_http_status = 428
    default_critical = False


class InvalidStateError(UserActionError):
    default_code = "form_state_invalid"
    default_message_key = "form_state_invalid"
    default_http_status = 409
    default_critical = False


class NotFoundError(UserActionError):
    default_code = "not_found"
    default_message_key = "action_invalid"
    default_http_status = 404
    default_critical = False


class DuplicateNameError(AppError):
    default_code = "duplicate_name"
    default_message_key = "action_invalid"
    default_http_status = 409
    default_critical = False


class IntegrationError(AppError):
    default_code = "integration_error"
    default_message_key = "store_unavailable"
    default_http_status = 502
    default_critical = False


class StoreError(IntegrationError):
    default_code = "store_error"
    default_message_key = "store_unavailable"


class UpstreamError(IntegrationError):
    default_code = "suggestion_failed"
    default_message_key = "suggestion_failed"


class SystemError(AppError):
    default_code = "system_error"
    default_message_key = "unexpected_error"
    default_http_status = 500
    default_critical = True


UNIQUE_VIOLATION_CODE = "23505"
DEFAULT_UNIQUE_MARKERS = ("unique constraint", "duplicate key")


def is_unique_violation(
    details: str | None,
    code: str | None = None,
    markers: Iterable[str] | None = None,
) -> bool:
    if str(code or "").strip() == UNIQUE_VIOLATION_CODE:
        return True
    normalized = (details or "").strip().lower()
    if not normalized:
        return False
    for marker in markers or DEFAULT_UNIQUE_MARKERS:
        marker = str(marker or "").strip().lower()
        if marker and marker in normalized:
            return True
    return False


def classify_store_failure(
    details: str | None,
    code: str | None = None,
    markers: Iterable[str] | None = None,
) -> str:
    if is_unique_violation(details, code=code, markers=markers):
        return "duplicate_name"
    return "store_error"
