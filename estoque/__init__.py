from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from estoque.config import Config
from estoque.observability import (
    configure_json_logging,
    ensure_request_id,
    mark_request_start,
    metrics_snapshot,
    observe_response,
)


def create_app(config_class=Config, table_store=None, suggestion_service=None):
    app = Flask(__name__)
    app.config.from_object(config_class())
    configure_json_logging(app)

    _register_error_handlers(app)
    _register_workspace(app, table_store, suggestion_service)
    _register_blueprints(app)
    _register_health(app)
    _register_ui_bundle(app)
    _register_cli(app)
    return app


def _register_workspace(app: Flask, table_store, suggestion_service) -> None:
    from estoque.workspace import init_workspace

    init_workspace(app, table_store=table_store, suggestion_service=suggestion_service)


def _register_blueprints(app: Flask) -> None:
    from estoque.routes.catalogo_routes import catalogo_bp
    from estoque.routes.pedidos_routes import pedidos_bp

    app.register_blueprint(catalogo_bp)
    app.register_blueprint(pedidos_bp)


def _register_cli(app: Flask) -> None:
    from estoque.cli import register_catalogo_cli

    register_catalogo_cli(app)


def _register_error_handlers(app: Flask) -> None:
    from estoque.errors import AppError, SystemError

    @app.before_request
    def _ensure_request_id() -> None:
        ensure_request_id()
        mark_request_start()

    @app.after_request
    def _append_request_id(response):
        response.headers["X-Request-Id"] = ensure_request_id()
        return observe_response(response)

    def _log_error(error: AppError, request_id: str) -> None:
        log_method = app.logger.error if error.critical else app.logger.warning
        log_method(
            "application_error",
            extra={
                "request_id": request_id,
                "error_code": error.code,
                "http_status": error.http_status,
                "message_key": error.message_key,
                "details": error.details,
                "request_path": request.path,
                "http_method": request.method,
            },
            exc_info=error.critical,
        )

    @app.errorhandler(AppError)
    def _handle_app_error(exc: AppError):
        request_id = ensure_request_id()
        _log_error(exc, request_id)
        return jsonify(exc.to_response_payload(request_id)), exc.http_status

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return exc

        request_id = ensure_request_id()
        mapped = SystemError(
            code="unexpected_error",
            message_key="unexpected_error",
            http_status=500,
            critical=True,
            details=str(exc),
        )
        app.logger.exception(
            "unexpected_exception",
            extra={
                "request_id": request_id,
                "error_code": mapped.code,
                "request_path": request.path,
                "http_method": request.method,
            },
        )
        return jsonify(mapped.to_response_payload(request_id)), mapped.http_status


def _register_health(app: Flask) -> None:
    @app.route("/health")
    def health():
        from estoque.contexts.sugestao.domain.service import DisabledSuggestionService
        from estoque.workspace import get_workspace

        workspace = get_workspace()
        payload = {
            "status": "ok",
            "store": app.config.get("STORE_MODE", "memory"),
            "catalogo_carregado": workspace.manager.carregado,
            "sugestoes": not isinstance(workspace.sugestoes.service, DisabledSuggestionService),
            "metrics": metrics_snapshot(),
        }
        return payload, 200


def _register_ui_bundle(app: Flask) -> None:
    @app.route("/api/ui")
    def ui_bundle():
        from estoque.critical_actions import critical_actions_bundle
        from estoque.ui_strings import frontend_bundle

        bundle = frontend_bundle()
        bundle["critical_actions"] = critical_actions_bundle()
        return jsonify(bundle)
