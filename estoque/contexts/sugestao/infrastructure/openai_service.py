from __future__ import annotations

import json
import logging
from typing import Dict

import openai
from openai import OpenAI

from estoque.contexts.sugestao.domain.service import SuggestionService, SuggestionServiceError


logger = logging.getLogger(__name__)


DEFAULT_MODEL = "gpt-4o-mini"


def _system_prompt(response_shape: Dict[str, Dict[str, str]]) -> str:
    fields = {name: meta.get("description", "") for name, meta in response_shape.items()}
    return (
        "Voce classifica insumos de estoque. "
        "Responda APENAS com um objeto JSON com exatamente estas chaves (todas texto): "
        f"{json.dumps(fields, ensure_ascii=False)}"
    )


class OpenAISuggestionService(SuggestionService):
    def __init__(
        self,
        api_key: str | None = None,
        *,
        model: str = DEFAULT_MODEL,
        timeout_seconds: float = 30,
        client: OpenAI | None = None,
    ) -> None:
        self.model = model or DEFAULT_MODEL
        self._client = client or OpenAI(api_key=api_key, timeout=timeout_seconds, max_retries=0)

    def generate(self, prompt: str, response_shape: Dict[str, Dict[str, str]]) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": _system_prompt(response_shape)},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
                temperature=0.1,
            )
        except openai.OpenAIError as exc:
            logger.warning("openai_request_failed", extra={"model": self.model, "error_type": type(exc).__name__})
            raise SuggestionServiceError(f"Erro ao chamar a IA: {exc}") from exc

        choices = getattr(response, "choices", None) or []
        if not choices:
            raise SuggestionServiceError("IA nao retornou nenhuma resposta.")
        content = choices[0].message.content
        if not content:
            raise SuggestionServiceError("IA retornou resposta vazia.")
        return content.strip()
