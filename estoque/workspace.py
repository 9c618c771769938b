from __future__ import annotations

import logging
import threading
from typing import Any, Mapping

from flask import current_app

from estoque.contexts.catalogo.application.service import CatalogManager
from estoque.contexts.catalogo.domain.store import TableStore
from estoque.contexts.catalogo.infrastructure.memory_store import InMemoryTableStore, build_demo_store
from estoque.contexts.pedidos.application.cart import Carrinho
from estoque.contexts.sugestao.application.bridge import SugestaoBridge
from estoque.contexts.sugestao.domain.service import DisabledSuggestionService, SuggestionService


logger = logging.getLogger(__name__)


WORKSPACE_EXTENSION = "estoque_workspace"


def build_table_store(config: Mapping[str, Any]) -> TableStore:
    mode = str(config.get("STORE_MODE") or "memory").strip().lower()
    if mode == "supabase":
        from estoque.contexts.catalogo.infrastructure.supabase_store import SupabaseTableStore

        return SupabaseTableStore(config.get("SUPABASE_URL"), config.get("SUPABASE_KEY"))
    if mode != "memory":
        raise RuntimeError(f"STORE_MODE invalido: {mode}")
    if config.get("STORE_SEED_DEMO", True):
        return build_demo_store()
    return InMemoryTableStore()


def build_suggestion_service(config: Mapping[str, Any]) -> SuggestionService:
    api_key = str(config.get("OPENAI_API_KEY") or "").strip()
    if not api_key:
        logger.info("suggestion_service_disabled", extra={"reason": "missing_api_key"})
        return DisabledSuggestionService()

    from estoque.contexts.sugestao.infrastructure.openai_service import OpenAISuggestionService

    return OpenAISuggestionService(
        api_key,
        model=str(config.get("OPENAI_MODEL") or "gpt-4o-mini"),
        timeout_seconds=float(config.get("SUGGESTION_TIMEOUT_SECONDS") or 30),
    )


class EstoqueWorkspace:
    """Estado compartilhado da aplicacao: catalogo, carrinho e ponte de sugestoes.

    As rotas devem segurar `lock` enquanto leem ou alteram o estado.
    """

    def __init__(
        self,
        table_store: TableStore,
        suggestion_service: SuggestionService,
        *,
        unique_markers=None,
    ) -> None:
        self.manager = CatalogManager(table_store, unique_markers=unique_markers)
        self.carrinho = Carrinho()
        self.sugestoes = SugestaoBridge(suggestion_service)
        self.lock = threading.Lock()

    def ensure_loaded(self) -> None:
        if not self.manager.carregado:
            self.manager.load_all()


def init_workspace(app, table_store: TableStore | None = None, suggestion_service: SuggestionService | None = None):
    workspace = EstoqueWorkspace(
        table_store if table_store is not None else build_table_store(app.config),
        suggestion_service if suggestion_service is not None else build_suggestion_service(app.config),
        unique_markers=app.config.get("STORE_UNIQUE_MARKERS"),
    )
    app.extensions[WORKSPACE_EXTENSION] = workspace
    return workspace


def get_workspace() -> EstoqueWorkspace:
    return current_app.extensions[WORKSPACE_EXTENSION]
