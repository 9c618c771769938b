from __future__ import annotations

from typing import Any, Callable, Dict

from flask import Blueprint, jsonify, request

from estoque.contexts.catalogo.application.search import filtrar_insumos, filtrar_por_nome
from estoque.critical_actions import resolve_confirmation
from estoque.domain.contracts import InsumoDraft
from estoque.errors import NotFoundError, ValidationError
from estoque.ui_strings import success_message
from estoque.workspace import get_workspace


catalogo_bp = Blueprint("catalogo", __name__)


def _ok(key: str, fallback: str | None = None) -> str:
    return success_message(key, fallback)


def _payload() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _busca() -> str:
    return str(request.args.get("busca") or "").strip()


def _find_insumo(manager, insumo_id: str):
    for insumo in manager.insumos:
        if insumo.id == insumo_id:
            return insumo
    raise NotFoundError(code="insumo_not_found", message_key="insumo_not_found", details=str(insumo_id))


@catalogo_bp.route("/api/catalogo", methods=["GET"])
def catalogo_api():
    workspace = get_workspace()
    busca = _busca()
    with workspace.lock:
        snapshot = workspace.manager.load_all()
    return jsonify(
        {
            "busca": busca,
            "insumos": [item.to_dict() for item in filtrar_insumos(busca, snapshot.insumos)],
            "categorias": [item.to_dict() for item in filtrar_por_nome(busca, snapshot.categorias)],
            "unidades": [item.to_dict() for item in filtrar_por_nome(busca, snapshot.unidades)],
        }
    )


@catalogo_bp.route("/api/catalogo/resumo", methods=["GET"])
def catalogo_resumo_api():
    workspace = get_workspace()
    with workspace.lock:
        total = workspace.manager.contar_insumos()
    return jsonify({"insumos": total})


@catalogo_bp.route("/api/catalogo/referencias-orfas", methods=["GET"])
def referencias_orfas_api():
    workspace = get_workspace()
    with workspace.lock:
        workspace.ensure_loaded()
        orfas = workspace.manager.referencias_orfas()
    return jsonify({"items": [item.to_dict() for item in orfas]})


# --- insumos ---


@catalogo_bp.route("/api/insumos", methods=["GET", "POST"])
def insumos_api():
    workspace = get_workspace()
    if request.method == "POST":
        payload = _payload()
        with workspace.lock:
            workspace.ensure_loaded()
            created = workspace.manager.add_insumo(payload)
        return jsonify({"insumo": created.to_dict(), "message": _ok("insumo_saved")}), 201

    busca = _busca()
    with workspace.lock:
        workspace.ensure_loaded()
        items = filtrar_insumos(busca, workspace.manager.insumos)
    return jsonify({"items": [item.to_dict() for item in items], "busca": busca})


@catalogo_bp.route("/api/insumos/<string:insumo_id>", methods=["PATCH", "DELETE"])
def insumo_crud_api(insumo_id: str):
    workspace = get_workspace()
    payload = _payload()
    if request.method == "DELETE":
        confirmed, _mode = resolve_confirmation(request, payload)
        with workspace.lock:
            workspace.manager.delete_insumo(insumo_id, confirmado=confirmed)
        return jsonify({"id": insumo_id, "message": _ok("insumo_deleted")}), 200

    with workspace.lock:
        workspace.ensure_loaded()
        updated = workspace.manager.update_insumo(insumo_id, payload)
    return jsonify({"insumo": updated.to_dict(), "message": _ok("insumo_saved")}), 200


@catalogo_bp.route("/api/insumos/sugestao", methods=["POST"])
def insumo_sugestao_api():
    workspace = get_workspace()
    sugestao = workspace.sugestoes.sugerir(_payload().get("nome"))
    return jsonify(sugestao.to_dict())


# --- categorias e unidades ---


def _named_collection(entity: str, plural: str) -> Callable:
    def collection_view():
        workspace = get_workspace()
        manager = workspace.manager
        if request.method == "POST":
            add = getattr(manager, f"add_{entity}")
            with workspace.lock:
                created = add(_payload().get("nome"))
            return jsonify({entity: created.to_dict(), "message": _ok(f"{entity}_saved")}), 201

        busca = _busca()
        with workspace.lock:
            workspace.ensure_loaded()
            items = filtrar_por_nome(busca, getattr(manager, plural))
        return jsonify({"items": [item.to_dict() for item in items], "busca": busca})

    collection_view.__name__ = f"{plural}_api"
    return collection_view


def _named_item(entity: str, plural: str) -> Callable:
    def item_view(row_id: str):
        workspace = get_workspace()
        manager = workspace.manager
        payload = _payload()
        if request.method == "DELETE":
            confirmed, _mode = resolve_confirmation(request, payload)
            delete = getattr(manager, f"delete_{entity}")
            with workspace.lock:
                delete(row_id, confirmado=confirmed)
            return jsonify({"id": row_id, "message": _ok(f"{entity}_deleted")}), 200

        update = getattr(manager, f"update_{entity}")
        with workspace.lock:
            updated = update(row_id, payload.get("nome"))
        return jsonify({entity: updated.to_dict(), "message": _ok(f"{entity}_saved")}), 200

    item_view.__name__ = f"{entity}_crud_api"
    return item_view


for _entity, _plural in (("categoria", "categorias"), ("unidade", "unidades")):
    catalogo_bp.add_url_rule(
        f"/api/{_plural}",
        view_func=_named_collection(_entity, _plural),
        methods=["GET", "POST"],
    )
    catalogo_bp.add_url_rule(
        f"/api/{_plural}/<string:row_id>",
        view_func=_named_item(_entity, _plural),
        methods=["PATCH", "DELETE"],
    )


# --- formulario de insumo ---


def _form_response(formulario, status: int = 200, **extra):
    body = {"formulario": formulario.to_dict()}
    body.update(extra)
    return jsonify(body), status


@catalogo_bp.route("/api/insumos/formulario", methods=["GET"])
def formulario_estado_api():
    workspace = get_workspace()
    with workspace.lock:
        return _form_response(workspace.manager.formulario)


@catalogo_bp.route("/api/insumos/formulario/novo", methods=["POST"])
def formulario_novo_api():
    workspace = get_workspace()
    payload = _payload()
    with workspace.lock:
        workspace.ensure_loaded()
        workspace.manager.formulario.iniciar_novo(InsumoDraft.from_dict(payload) if payload else None)
        return _form_response(workspace.manager.formulario)


@catalogo_bp.route("/api/insumos/formulario/editar/<string:insumo_id>", methods=["POST"])
def formulario_editar_api(insumo_id: str):
    workspace = get_workspace()
    with workspace.lock:
        workspace.ensure_loaded()
        insumo = _find_insumo(workspace.manager, insumo_id)
        workspace.manager.formulario.iniciar_edicao(insumo)
        return _form_response(workspace.manager.formulario)


@catalogo_bp.route("/api/insumos/formulario/atualizar", methods=["POST"])
def formulario_atualizar_api():
    workspace = get_workspace()
    with workspace.lock:
        workspace.manager.formulario.atualizar(**_payload())
        return _form_response(workspace.manager.formulario)


@catalogo_bp.route("/api/insumos/formulario/subentidade", methods=["POST"])
def formulario_subentidade_api():
    workspace = get_workspace()
    tipo = str(_payload().get("tipo") or "").strip()
    if not tipo:
        raise ValidationError(details="tipo obrigatorio")
    with workspace.lock:
        workspace.manager.formulario.solicitar_subentidade(tipo)
        return _form_response(workspace.manager.formulario)


@catalogo_bp.route("/api/insumos/formulario/confirmar-subentidade", methods=["POST"])
def formulario_confirmar_subentidade_api():
    workspace = get_workspace()
    with workspace.lock:
        formulario = workspace.manager.formulario
        tipo = formulario.subentidade
        created = formulario.confirmar_subentidade(_payload().get("nome"))
        return _form_response(formulario, 201, criado={"tipo": tipo, **created.to_dict()})


@catalogo_bp.route("/api/insumos/formulario/cancelar-subentidade", methods=["POST"])
def formulario_cancelar_subentidade_api():
    workspace = get_workspace()
    with workspace.lock:
        workspace.manager.formulario.cancelar_subentidade()
        return _form_response(workspace.manager.formulario)


@catalogo_bp.route("/api/insumos/formulario/sugerir", methods=["POST"])
def formulario_sugerir_api():
    workspace = get_workspace()
    formulario = workspace.manager.formulario
    with workspace.lock:
        nome = formulario.nome_para_sugestao()
    # chamada remota fora do lock; o estado e conferido de novo ao aplicar
    sugestao = workspace.sugestoes.sugerir(nome)
    with workspace.lock:
        formulario.aplicar_sugestao(sugestao)
        return _form_response(formulario)


@catalogo_bp.route("/api/insumos/formulario/enviar", methods=["POST"])
def formulario_enviar_api():
    workspace = get_workspace()
    with workspace.lock:
        saved = workspace.manager.formulario.enviar()
        return _form_response(
            workspace.manager.formulario,
            200,
            insumo=saved.to_dict(),
            message=_ok("insumo_saved"),
        )


@catalogo_bp.route("/api/insumos/formulario/cancelar", methods=["POST"])
def formulario_cancelar_api():
    workspace = get_workspace()
    with workspace.lock:
        workspace.manager.formulario.cancelar()
        return _form_response(workspace.manager.formulario)
