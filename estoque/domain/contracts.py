from __future__ import annotations

import unicodedata
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Tuple, Union

from estoque.errors import ValidationError


_CENT = Decimal("0.01")
IMMUTABLE_FIELDS = ("id", "created_at")


def _safe_str(value: object | None) -> str | None:
    if value is None:
        return None
    raw = str(value).strip()
    return raw or None


def _preco_invalid(value: object | None) -> ValidationError:
    return ValidationError(code="preco_invalid", message_key="preco_invalid", details=f"preco={value!r}")


def parse_preco(value: object | None, *, arredondar: bool = False) -> Decimal:
    """Aceita Decimal, numeros e texto com virgula ou ponto decimal ("12,50").

    Mais de duas casas decimais ("1.234", "12,345") e rejeitado, a menos que
    ``arredondar`` seja verdadeiro, caso usado para linhas ja gravadas.
    """
    if isinstance(value, bool):
        raise _preco_invalid(value)
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = Decimal(str(value))
    else:
        raw = str(value or "").strip().replace("R$", "").strip()
        if "," in raw:
            raw = raw.replace(".", "").replace(",", ".")
        try:
            parsed = Decimal(raw)
        except InvalidOperation:
            raise _preco_invalid(value) from None
    if not parsed.is_finite() or parsed < 0:
        raise _preco_invalid(value)
    try:
        if not arredondar and parsed.normalize().as_tuple().exponent < -2:
            raise _preco_invalid(value)
        return parsed.quantize(_CENT)
    except InvalidOperation:
        raise _preco_invalid(value) from None


def _row_preco(value: object | None) -> Decimal:
    try:
        return parse_preco(value if value is not None else 0, arredondar=True)
    except ValidationError:
        return Decimal("0.00")


@dataclass(frozen=True)
class Insumo:
    id: str
    nome: str
    unidade: str
    categoria: str
    preco: Decimal = Decimal("0.00")
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "nome": self.nome,
            "unidade": self.unidade,
            "categoria": self.categoria,
            "preco": str(self.preco),
            "created_at": self.created_at,
        }

    @staticmethod
    def from_row(row: Dict[str, Any]) -> "Insumo":
        data = dict(row or {})
        return Insumo(
            id=str(data.get("id") or ""),
            nome=str(data.get("nome") or ""),
            unidade=str(data.get("unidade") or ""),
            categoria=str(data.get("categoria") or ""),
            preco=_row_preco(data.get("preco")),
            created_at=str(data.get("created_at") or ""),
        )


@dataclass(frozen=True)
class Categoria:
    id: str
    nome: str
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "nome": self.nome, "created_at": self.created_at}

    @staticmethod
    def from_row(row: Dict[str, Any]) -> "Categoria":
        data = dict(row or {})
        return Categoria(
            id=str(data.get("id") or ""),
            nome=str(data.get("nome") or ""),
            created_at=str(data.get("created_at") or ""),
        )


@dataclass(frozen=True)
class Unidade:
    id: str
    nome: str
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "nome": self.nome, "created_at": self.created_at}

    @staticmethod
    def from_row(row: Dict[str, Any]) -> "Unidade":
        data = dict(row or {})
        return Unidade(
            id=str(data.get("id") or ""),
            nome=str(data.get("nome") or ""),
            created_at=str(data.get("created_at") or ""),
        )


@dataclass
class InsumoDraft:
    """Estado do formulario de insumo, ainda nao validado."""

    nome: str = ""
    categoria: str = ""
    unidade: str = ""
    preco: Decimal | str | None = None

    def copy(self) -> "InsumoDraft":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nome": self.nome,
            "categoria": self.categoria,
            "unidade": self.unidade,
            "preco": None if self.preco is None else str(self.preco),
        }

    @staticmethod
    def from_insumo(insumo: Insumo) -> "InsumoDraft":
        return InsumoDraft(
            nome=insumo.nome,
            categoria=insumo.categoria,
            unidade=insumo.unidade,
            preco=insumo.preco,
        )

    @staticmethod
    def from_dict(payload: Dict[str, Any]) -> "InsumoDraft":
        data = dict(payload or {})
        return InsumoDraft(
            nome=str(data.get("nome") or ""),
            categoria=str(data.get("categoria") or ""),
            unidade=str(data.get("unidade") or ""),
            preco=data.get("preco"),
        )


@dataclass(frozen=True)
class NovoInsumo:
    draft: InsumoDraft


@dataclass(frozen=True)
class InsumoExistente:
    id: str
    patch: Dict[str, Any] = field(default_factory=dict)


InsumoInput = Union[NovoInsumo, InsumoExistente]


@dataclass(frozen=True)
class CatalogoSnapshot:
    insumos: Tuple[Insumo, ...]
    categorias: Tuple[Categoria, ...]
    unidades: Tuple[Unidade, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "insumos": [item.to_dict() for item in self.insumos],
            "categorias": [item.to_dict() for item in self.categorias],
            "unidades": [item.to_dict() for item in self.unidades],
        }


@dataclass(frozen=True)
class Sugestao:
    categoria: str
    unidade: str

    def to_dict(self) -> Dict[str, str]:
        return {"categoria": self.categoria, "unidade": self.unidade}


def strip_immutable_fields(patch: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in dict(patch or {}).items() if key not in IMMUTABLE_FIELDS}


def clean_name(value: object | None) -> str | None:
    return _safe_str(value)


def name_sort_key(value: object | None) -> tuple[str, str]:
    """Ordena como localeCompare: sem acento e sem caixa, depois o texto original."""
    raw = str(value if value is not None else "")
    text = unicodedata.normalize("NFKD", raw)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return (text.casefold(), raw)
