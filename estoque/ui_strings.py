from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict


FRIENDLY_TERMS: Dict[str, str] = {
    "app_name": "Plataforma Insumos",
    "insumo": "Insumo",
    "categoria": "Categoria",
    "unidade": "Unidade de medida",
    "pedido": "Pedido",
    "carrinho": "Carrinho",
}


ENTITY_LABELS: Dict[str, str] = {
    "insumos": "Insumo",
    "categorias": "Categoria",
    "unidades": "Unidade",
}


MESSAGES: Dict[str, Dict[str, str]] = {
    "success": {
        "insumo_saved": "Insumo salvo com sucesso.",
        "insumo_deleted": "Insumo excluido.",
        "categoria_saved": "Categoria salva com sucesso.",
        "categoria_deleted": "Categoria excluida.",
        "unidade_saved": "Unidade salva com sucesso.",
        "unidade_deleted": "Unidade excluida.",
        "cart_cleared": "Carrinho esvaziado.",
    },
    "error": {
        "action_invalid": "Acao invalida para esta operacao.",
        "confirmation_required": "Confirme explicitamente esta acao critica para continuar.",
        "form_state_invalid": "Esta acao nao e permitida no estado atual do formulario.",
        "load_failed": "Nao foi possivel carregar os dados.",
        "insumo_add_failed": "Falha ao adicionar o insumo.",
        "insumo_update_failed": "Falha ao atualizar o insumo.",
        "insumo_delete_failed": "Falha ao excluir o insumo.",
        "insumo_not_found": "Insumo nao encontrado.",
        "insumo_duplicate": "Esse insumo ja existe.",
        "categoria_add_failed": "Falha ao adicionar a categoria.",
        "categoria_update_failed": "Falha ao atualizar a categoria.",
        "categoria_delete_failed": "Falha ao excluir a categoria.",
        "categoria_not_found": "Categoria nao encontrada.",
        "categoria_duplicate": "Essa categoria ja existe.",
        "categoria_unknown": "Categoria informada nao existe.",
        "unidade_add_failed": "Falha ao adicionar a unidade.",
        "unidade_update_failed": "Falha ao atualizar a unidade.",
        "unidade_delete_failed": "Falha ao excluir a unidade.",
        "unidade_not_found": "Unidade nao encontrada.",
        "unidade_duplicate": "Essa unidade ja existe.",
        "unidade_unknown": "Unidade informada nao existe.",
        "insumo_count_failed": "Nao foi possivel contar os insumos.",
        "nome_required": "Informe o nome.",
        "categoria_required": "Informe a categoria.",
        "unidade_required": "Informe a unidade de medida.",
        "preco_invalid": "Preco invalido. Use um valor numerico nao negativo com ate duas casas decimais.",
        "quantity_invalid": "Quantidade invalida.",
        "no_changes": "Nenhuma alteracao informada.",
        "suggestion_name_required": "Digite o nome do item para obter sugestoes.",
        "suggestion_failed": "Nao foi possivel obter sugestoes da IA. Tente novamente.",
        "suggestion_disabled": "API Key da IA nao configurada.",
        "store_unavailable": "Nao conseguimos falar com o banco de dados agora. Tente novamente.",
        "unexpected_error": "Nao foi possivel concluir a operacao.",
    },
    "confirm": {
        "delete_insumo": "Tem certeza que deseja excluir este insumo?",
        "delete_categoria": "Tem certeza que deseja excluir esta categoria?",
        "delete_unidade": "Tem certeza que deseja excluir esta unidade?",
    },
}


UI_TEXTS: Dict[str, str] = {
    "page.insumos": "Gerenciamento de Insumos",
    "page.pedidos": "Novo Pedido",
    "label.empty_list": "Nenhum item encontrado.",
    "label.empty_cart": "Seu carrinho esta vazio",
    "label.invalid_date": "Data invalida",
    "form.title.new_insumo": "Adicionar Novo Insumo",
    "form.title.edit_insumo": "Editar Insumo",
    "form.title.new_categoria": "Adicionar Nova Categoria",
    "form.title.new_unidade": "Adicionar Nova Unidade",
    "impact.delete_insumo": "O insumo deixa de aparecer no catalogo e nos pedidos.",
    "impact.delete_categoria": "Insumos que usam esta categoria continuam com o nome antigo.",
    "impact.delete_unidade": "Insumos que usam esta unidade continuam com o nome antigo.",
}


def get_ui_text(key: str, default: str | None = None) -> str:
    if key in UI_TEXTS:
        return UI_TEXTS[key]
    if default is not None:
        return default
    return key


def get_message(category: str, key: str, default: str | None = None) -> str:
    message = MESSAGES.get(category, {}).get(key)
    if message:
        return message
    if default is not None:
        return default
    return key


def error_message(key: str, default: str | None = None) -> str:
    return get_message("error", key, default)


def success_message(key: str, default: str | None = None) -> str:
    return get_message("success", key, default)


def confirm_message(key: str, default: str | None = None) -> str:
    return get_message("confirm", key, default)


_CENT = Decimal("0.01")


def format_currency(value: Decimal | int | float | str | None) -> str:
    """Formata no padrao pt-BR: R$ 1.234,50."""
    try:
        amount = Decimal(str(value if value is not None else 0))
    except InvalidOperation:
        amount = Decimal("0")
    amount = amount.quantize(_CENT, rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    integer_part, _, fraction = f"{abs(amount):.2f}".partition(".")
    groups = []
    while len(integer_part) > 3:
        groups.insert(0, integer_part[-3:])
        integer_part = integer_part[:-3]
    groups.insert(0, integer_part)
    return f"{sign}R$ {'.'.join(groups)},{fraction}"


def format_date(value: str | None) -> str:
    raw = str(value or "").strip()
    if not raw:
        return get_ui_text("label.invalid_date")
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return get_ui_text("label.invalid_date")
    return parsed.strftime("%d/%m/%Y")


def frontend_bundle() -> Dict[str, object]:
    return {
        "terms": FRIENDLY_TERMS,
        "entity_labels": ENTITY_LABELS,
        "messages": MESSAGES,
        "texts": UI_TEXTS,
    }
