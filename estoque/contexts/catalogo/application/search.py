from __future__ import annotations

from typing import Iterable, List, Protocol, TypeVar

from estoque.domain.contracts import Insumo


class _Nomeado(Protocol):
    nome: str


N = TypeVar("N", bound=_Nomeado)


def _normalize_term(termo: str | None) -> str:
    return str(termo or "").strip().casefold()


def _contains(value: str | None, needle: str) -> bool:
    return needle in str(value or "").casefold()


def filtrar_por_nome(termo: str | None, itens: Iterable[N]) -> List[N]:
    needle = _normalize_term(termo)
    if not needle:
        return list(itens)
    return [item for item in itens if _contains(item.nome, needle)]


def filtrar_insumos(termo: str | None, insumos: Iterable[Insumo]) -> List[Insumo]:
    """Busca por nome ou categoria, sem diferenciar maiusculas."""
    needle = _normalize_term(termo)
    if not needle:
        return list(insumos)
    return [item for item in insumos if _contains(item.nome, needle) or _contains(item.categoria, needle)]
