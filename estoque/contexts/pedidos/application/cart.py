from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List

from estoque.contexts.catalogo.application.search import filtrar_por_nome
from estoque.domain.contracts import Insumo
from estoque.errors import ValidationError
from estoque.ui_strings import format_currency


_CENT = Decimal("0.01")


def _parse_quantidade(value: object) -> int:
    if isinstance(value, bool):
        raise ValidationError(code="quantity_invalid", message_key="quantity_invalid", details=f"quantidade={value!r}")
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        raise ValidationError(code="quantity_invalid", message_key="quantity_invalid", details=f"quantidade={value!r}")
    try:
        return int(value.strip())
    except ValueError:
        raise ValidationError(
            code="quantity_invalid",
            message_key="quantity_invalid",
            details=f"quantidade={value!r}",
        ) from None


@dataclass(frozen=True)
class ItemCarrinho:
    insumo: Insumo
    quantidade: int

    @property
    def subtotal(self) -> Decimal:
        return self.insumo.preco * self.quantidade

    def to_dict(self) -> Dict[str, Any]:
        return {
            "insumo": self.insumo.to_dict(),
            "quantidade": self.quantidade,
            "subtotal": format_currency(self.subtotal),
        }


class Carrinho:
    def __init__(self) -> None:
        self._itens: Dict[str, ItemCarrinho] = {}

    def set_quantidade(self, insumo: Insumo, quantidade: object) -> None:
        n = _parse_quantidade(quantidade)
        if n <= 0:
            self._itens.pop(insumo.id, None)
            return
        self._itens[insumo.id] = ItemCarrinho(insumo=insumo, quantidade=n)

    def quantidade(self, insumo_id: str) -> int:
        item = self._itens.get(insumo_id)
        return item.quantidade if item else 0

    def entries(self) -> List[ItemCarrinho]:
        return list(self._itens.values())

    def total(self) -> Decimal:
        return sum((item.subtotal for item in self._itens.values()), Decimal("0"))

    def total_exibicao(self) -> Decimal:
        return self.total().quantize(_CENT, rounding=ROUND_HALF_UP)

    def item_count(self) -> int:
        return sum(item.quantidade for item in self._itens.values())

    def limpar(self) -> None:
        self._itens.clear()

    def resumo(self) -> Dict[str, Any]:
        total = self.total_exibicao()
        return {
            "itens": [item.to_dict() for item in self.entries()],
            "item_count": self.item_count(),
            "total": str(total),
            "total_formatado": format_currency(total),
        }


@dataclass(frozen=True)
class ItemPedido:
    insumo: Insumo
    quantidade: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.insumo.to_dict(),
            "preco_formatado": format_currency(self.insumo.preco),
            "quantidade": self.quantidade,
        }


@dataclass
class GrupoCategoria:
    categoria: str
    itens: List[ItemPedido] = field(default_factory=list)

    @property
    def itens_no_carrinho(self) -> int:
        return sum(1 for item in self.itens if item.quantidade > 0)

    @property
    def destacado(self) -> bool:
        return self.itens_no_carrinho > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "categoria": self.categoria,
            "itens": [item.to_dict() for item in self.itens],
            "itens_no_carrinho": self.itens_no_carrinho,
            "destacado": self.destacado,
        }


def agrupar_por_categoria(insumos: Iterable[Insumo], carrinho: Carrinho, termo: str = "") -> List[GrupoCategoria]:
    """Agrupa o catalogo inteiro por categoria, na ordem em que cada uma aparece.

    A busca aqui considera apenas o nome do insumo.
    """
    grupos: Dict[str, GrupoCategoria] = {}
    for insumo in filtrar_por_nome(termo, insumos):
        grupo = grupos.get(insumo.categoria)
        if grupo is None:
            grupo = grupos[insumo.categoria] = GrupoCategoria(categoria=insumo.categoria)
        grupo.itens.append(ItemPedido(insumo=insumo, quantidade=carrinho.quantidade(insumo.id)))
    return list(grupos.values())
