from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict

from estoque.contexts.sugestao.application.bridge import SugestaoBridge, mesclar_sugestao
from estoque.domain.contracts import (
    Insumo,
    InsumoDraft,
    InsumoExistente,
    NovoInsumo,
    Sugestao,
)
from estoque.errors import InvalidStateError, ValidationError

if TYPE_CHECKING:
    from estoque.contexts.catalogo.application.service import CatalogManager


logger = logging.getLogger(__name__)


class EstadoFormulario(str, Enum):
    OCIOSO = "ocioso"
    EDITANDO_INSUMO = "editando_insumo"
    EDITANDO_SUBENTIDADE = "editando_subentidade"


SUBENTIDADES = ("categoria", "unidade")
_DRAFT_FIELDS = ("nome", "categoria", "unidade", "preco")


class InsumoFormFlow:
    """Formulario de insumo com criacao inline de categoria/unidade.

    Transicoes:
      OCIOSO -> EDITANDO_INSUMO            (iniciar_novo / iniciar_edicao)
      EDITANDO_INSUMO -> EDITANDO_SUBENTIDADE  (solicitar_subentidade; rascunho vai para o cache)
      EDITANDO_SUBENTIDADE -> EDITANDO_INSUMO  (confirmar_subentidade / cancelar_subentidade)
      EDITANDO_INSUMO -> OCIOSO            (enviar com sucesso / cancelar)
    """

    def __init__(self, manager: "CatalogManager") -> None:
        self._manager = manager
        self._reset()

    def _reset(self) -> None:
        self.estado = EstadoFormulario.OCIOSO
        self.draft: InsumoDraft | None = None
        self.insumo_id: str | None = None
        self.subentidade: str | None = None
        self._cache: InsumoDraft | None = None

    @property
    def rascunho_em_cache(self) -> InsumoDraft | None:
        return None if self._cache is None else self._cache.copy()

    def _expect(self, *estados: EstadoFormulario) -> None:
        if self.estado not in estados:
            raise InvalidStateError(
                details=f"estado={self.estado.value}",
                payload={"estado": self.estado.value},
            )

    def iniciar_novo(self, draft: InsumoDraft | None = None) -> InsumoDraft:
        self._expect(EstadoFormulario.OCIOSO)
        self.draft = draft.copy() if draft is not None else InsumoDraft()
        self.insumo_id = None
        self.estado = EstadoFormulario.EDITANDO_INSUMO
        return self.draft.copy()

    def iniciar_edicao(self, insumo: Insumo) -> InsumoDraft:
        self._expect(EstadoFormulario.OCIOSO)
        self.draft = InsumoDraft.from_insumo(insumo)
        self.insumo_id = insumo.id
        self.estado = EstadoFormulario.EDITANDO_INSUMO
        return self.draft.copy()

    def atualizar(self, **campos: Any) -> InsumoDraft:
        self._expect(EstadoFormulario.EDITANDO_INSUMO)
        unknown = sorted(set(campos) - set(_DRAFT_FIELDS))
        if unknown:
            raise ValidationError(details=f"campos desconhecidos: {', '.join(unknown)}")
        for key, value in campos.items():
            setattr(self.draft, key, value if key == "preco" else str(value or ""))
        return self.draft.copy()

    def solicitar_subentidade(self, tipo: str) -> None:
        self._expect(EstadoFormulario.EDITANDO_INSUMO)
        if tipo not in SUBENTIDADES:
            raise ValidationError(details=f"subentidade invalida: {tipo!r}")
        self._cache = self.draft.copy()
        self.subentidade = tipo
        self.estado = EstadoFormulario.EDITANDO_SUBENTIDADE

    def confirmar_subentidade(self, nome: str):
        self._expect(EstadoFormulario.EDITANDO_SUBENTIDADE)
        if self.subentidade == "categoria":
            created = self._manager.add_categoria(nome)
        else:
            created = self._manager.add_unidade(nome)
        restored = self._cache.copy()
        setattr(restored, self.subentidade, created.nome)
        self._resume(restored)
        return created

    def cancelar_subentidade(self) -> InsumoDraft:
        self._expect(EstadoFormulario.EDITANDO_SUBENTIDADE)
        self._resume(self._cache.copy())
        return self.draft.copy()

    def _resume(self, draft: InsumoDraft) -> None:
        self.draft = draft
        self._cache = None
        self.subentidade = None
        self.estado = EstadoFormulario.EDITANDO_INSUMO

    def aplicar_sugestao(self, sugestao: Sugestao) -> InsumoDraft:
        self._expect(EstadoFormulario.EDITANDO_INSUMO)
        self.draft = mesclar_sugestao(self.draft, sugestao)
        return self.draft.copy()

    def nome_para_sugestao(self) -> str:
        self._expect(EstadoFormulario.EDITANDO_INSUMO)
        return self.draft.nome

    def sugerir(self, bridge: SugestaoBridge) -> InsumoDraft:
        return self.aplicar_sugestao(bridge.sugerir(self.nome_para_sugestao()))

    def enviar(self) -> Insumo:
        self._expect(EstadoFormulario.EDITANDO_INSUMO)
        if self.insumo_id:
            entrada = InsumoExistente(id=self.insumo_id, patch=self.draft.to_dict())
        else:
            entrada = NovoInsumo(draft=self.draft.copy())
        saved = self._manager.salvar_insumo(entrada)
        logger.info("insumo_form_submitted", extra={"insumo_id": saved.id, "edicao": bool(self.insumo_id)})
        self._reset()
        return saved

    def cancelar(self) -> None:
        self._reset()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "estado": self.estado.value,
            "insumo_id": self.insumo_id,
            "subentidade": self.subentidade,
            "rascunho": None if self.draft is None else self.draft.to_dict(),
            "rascunho_em_cache": None if self._cache is None else self._cache.to_dict(),
        }
