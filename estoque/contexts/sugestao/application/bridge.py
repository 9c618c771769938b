from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict

from estoque.contexts.sugestao.domain.service import SuggestionService, SuggestionServiceError
from estoque.domain.contracts import InsumoDraft, Sugestao, clean_name
from estoque.errors import UpstreamError, ValidationError
from estoque.observability import observe_suggestion


logger = logging.getLogger(__name__)


RESPONSE_SHAPE: Dict[str, Dict[str, str]] = {
    "categoria": {"type": "string", "description": "Categoria do item (ex: Laticinios, Limpeza)"},
    "unidade": {"type": "string", "description": "Unidade de medida padrao (ex: kg, L, unidade)"},
}


def _prompt(nome: str) -> str:
    return f'Sugira a categoria e a unidade de medida padrao para o insumo: "{nome}".'


def _parse_sugestao(raw: Any) -> Sugestao:
    """Aceita somente um objeto com exatamente categoria e unidade em texto nao vazio."""
    data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
    if not isinstance(data, dict) or set(data) != set(RESPONSE_SHAPE):
        raise ValueError("formato de resposta inesperado")
    values = {}
    for key in RESPONSE_SHAPE:
        value = data[key]
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"campo {key} invalido")
        values[key] = value.strip()
    return Sugestao(categoria=values["categoria"], unidade=values["unidade"])


class SugestaoBridge:
    def __init__(self, service: SuggestionService) -> None:
        self.service = service

    def sugerir(self, nome: str | None) -> Sugestao:
        value = clean_name(nome)
        if not value:
            raise ValidationError(code="suggestion_name_required", message_key="suggestion_name_required")

        started = time.perf_counter()
        try:
            raw = self.service.generate(_prompt(value), RESPONSE_SHAPE)
            sugestao = _parse_sugestao(raw)
        except SuggestionServiceError as exc:
            observe_suggestion("error")
            logger.warning("suggestion_service_failed", extra={"insumo_nome": value, "details": str(exc)})
            message_key = "suggestion_disabled" if exc.code == "suggestion_disabled" else "suggestion_failed"
            raise UpstreamError(code=message_key, message_key=message_key, details=str(exc)) from exc
        except (ValueError, TypeError) as exc:
            observe_suggestion("invalid")
            logger.warning("suggestion_response_invalid", extra={"insumo_nome": value, "details": str(exc)})
            raise UpstreamError(details=f"resposta invalida: {exc}") from exc

        observe_suggestion("ok")
        logger.info(
            "suggestion_generated",
            extra={
                "insumo_nome": value,
                "categoria": sugestao.categoria,
                "unidade": sugestao.unidade,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        return sugestao


def mesclar_sugestao(draft: InsumoDraft, sugestao: Sugestao) -> InsumoDraft:
    """So preenche categoria/unidade que ainda estao vazias."""
    merged = draft.copy()
    if not clean_name(merged.categoria):
        merged.categoria = sugestao.categoria
    if not clean_name(merged.unidade):
        merged.unidade = sugestao.unidade
    return merged
