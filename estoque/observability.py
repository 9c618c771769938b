from __future__ import annotations

import json
import logging
import threading
import time
import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Dict

from flask import g, has_request_context, request


# Atributos que todo LogRecord ja traz; o resto veio de `extra=`.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


class JsonLogFormatter(logging.Formatter):
    """Uma linha JSON por registro, com o request id e os campos de `extra`."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None) or current_request_id(),
        }
        if has_request_context():
            payload["method"] = request.method
            payload["endpoint"] = request.endpoint or "unknown"

        extras = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_") and key not in payload
        }
        payload.update(extras)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, separators=(",", ":"), default=str)


def configure_json_logging(app) -> None:
    if not app.config.get("LOG_JSON", True):
        return
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).strip().upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter())
    logging.basicConfig(level=level, handlers=[handler], force=True)
    app.logger.handlers = []
    app.logger.propagate = True


def ensure_request_id() -> str:
    if not getattr(g, "request_id", None):
        incoming = (request.headers.get("X-Request-Id") or "").strip()
        g.request_id = incoming or uuid.uuid4().hex
    return g.request_id


def current_request_id() -> str:
    if has_request_context():
        return getattr(g, "request_id", None) or "n/a"
    return "n/a"


class MetricsRegistry:
    """Contadores em memoria para HTTP, Table Store e sugestoes."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._http: Counter = Counter()
        self._store: Counter = Counter()
        self._suggestions: Counter = Counter()

    def observe_http(self, method: str, endpoint: str, status_code: int) -> None:
        key = (method.upper(), endpoint or "unknown", f"{int(status_code) // 100}xx")
        with self._lock:
            self._http[key] += 1

    def observe_store_operation(self, table: str, operation: str, result: str) -> None:
        with self._lock:
            self._store[(table or "unknown", operation or "unknown", result or "unknown")] += 1

    def observe_suggestion(self, result: str) -> None:
        with self._lock:
            self._suggestions[result or "unknown"] += 1

    def snapshot(self) -> dict:
        with self._lock:
            http = [
                {"method": method, "endpoint": endpoint, "status": status, "total": total}
                for (method, endpoint, status), total in sorted(self._http.items())
            ]
            return {
                "requests_total": sum(self._http.values()),
                "errors_total": sum(item["total"] for item in http if item["status"] in ("4xx", "5xx")),
                "http": http,
                "store_operations": [
                    {"table": table, "operation": operation, "result": result, "total": total}
                    for (table, operation, result), total in sorted(self._store.items())
                ],
                "suggestions": dict(sorted(self._suggestions.items())),
            }

    def reset(self) -> None:
        with self._lock:
            self._http.clear()
            self._store.clear()
            self._suggestions.clear()


_METRICS = MetricsRegistry()


def mark_request_start() -> None:
    g.request_started_at = time.perf_counter()


def observe_response(response):
    started = getattr(g, "request_started_at", None)
    elapsed_ms = (time.perf_counter() - started) * 1000.0 if started is not None else 0.0
    _METRICS.observe_http(request.method, request.endpoint, response.status_code)
    response.headers["X-Response-Time-Ms"] = f"{elapsed_ms:.2f}"
    return response


def observe_store_operation(table: str, operation: str, result: str) -> None:
    _METRICS.observe_store_operation(table, operation, result)


def observe_suggestion(result: str) -> None:
    _METRICS.observe_suggestion(result)


def metrics_snapshot() -> dict:
    return _METRICS.snapshot()


def reset_metrics_for_tests() -> None:
    _METRICS.reset()
