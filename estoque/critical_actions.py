from __future__ import annotations

from typing import Any, Dict, Tuple

from estoque.ui_strings import confirm_message, get_ui_text


CRITICAL_ACTIONS: Dict[str, Dict[str, str]] = {
    "delete_insumo": {
        "action_key": "delete_insumo",
        "confirm_message_key": "delete_insumo",
        "impact_text_key": "impact.delete_insumo",
    },
    "delete_categoria": {
        "action_key": "delete_categoria",
        "confirm_message_key": "delete_categoria",
        "impact_text_key": "impact.delete_categoria",
    },
    "delete_unidade": {
        "action_key": "delete_unidade",
        "confirm_message_key": "delete_unidade",
        "impact_text_key": "impact.delete_unidade",
    },
}


_TRUE_TEXT_VALUES = {"1", "true", "yes", "on", "sim"}


def get_critical_action(action_key: str | None) -> Dict[str, str] | None:
    if not action_key:
        return None
    return CRITICAL_ACTIONS.get(str(action_key).strip())


def confirmation_payload(action_key: str) -> Dict[str, Any]:
    meta = get_critical_action(action_key) or {}
    confirm_key = meta.get("confirm_message_key") or action_key
    impact_key = meta.get("impact_text_key") or f"impact.{action_key}"
    return {
        "action": action_key,
        "confirm_message": confirm_message(confirm_key, confirm_key),
        "impact": get_ui_text(impact_key, ""),
    }


def critical_actions_bundle() -> Dict[str, Dict[str, Any]]:
    return {action_key: confirmation_payload(action_key) for action_key in CRITICAL_ACTIONS}


def _is_explicit_true(value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return int(value) == 1
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_TEXT_VALUES
    return False


def resolve_confirmation(request_obj, payload: dict | None = None) -> Tuple[bool, str]:
    payload_dict = payload if isinstance(payload, dict) else {}

    confirm_value = payload_dict.get("confirm")
    if confirm_value is None:
        confirm_value = request_obj.args.get("confirm")
    if confirm_value is None:
        confirm_value = request_obj.headers.get("X-Confirm")

    if _is_explicit_true(confirm_value):
        return True, "confirm_flag"

    return False, "missing_confirmation"
