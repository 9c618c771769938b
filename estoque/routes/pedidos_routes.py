from __future__ import annotations

from flask import Blueprint, jsonify, request

from estoque.contexts.pedidos.application.cart import agrupar_por_categoria
from estoque.errors import NotFoundError
from estoque.ui_strings import success_message
from estoque.workspace import get_workspace


pedidos_bp = Blueprint("pedidos", __name__)


@pedidos_bp.route("/api/pedidos/carrinho", methods=["GET", "DELETE"])
def carrinho_api():
    workspace = get_workspace()
    with workspace.lock:
        if request.method == "DELETE":
            workspace.carrinho.limpar()
            return jsonify({**workspace.carrinho.resumo(), "message": success_message("cart_cleared")})
        return jsonify(workspace.carrinho.resumo())


@pedidos_bp.route("/api/pedidos/carrinho/<string:insumo_id>", methods=["PUT"])
def carrinho_item_api(insumo_id: str):
    workspace = get_workspace()
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    with workspace.lock:
        workspace.ensure_loaded()
        insumo = next((item for item in workspace.manager.insumos if item.id == insumo_id), None)
        if insumo is None:
            raise NotFoundError(code="insumo_not_found", message_key="insumo_not_found", details=insumo_id)
        workspace.carrinho.set_quantidade(insumo, payload.get("quantidade"))
        return jsonify(workspace.carrinho.resumo())


@pedidos_bp.route("/api/pedidos/grupos", methods=["GET"])
def grupos_api():
    workspace = get_workspace()
    busca = str(request.args.get("busca") or "").strip()
    with workspace.lock:
        workspace.ensure_loaded()
        grupos = agrupar_por_categoria(workspace.manager.insumos, workspace.carrinho, busca)
        resumo = workspace.carrinho.resumo()
    return jsonify(
        {
            "busca": busca,
            "grupos": [grupo.to_dict() for grupo in grupos],
            "item_count": resumo["item_count"],
            "total_formatado": resumo["total_formatado"],
        }
    )
