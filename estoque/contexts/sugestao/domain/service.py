from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict


class SuggestionServiceError(RuntimeError):
    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = str(code or "").strip() or None


class SuggestionService(ABC):
    @abstractmethod
    def generate(self, prompt: str, response_shape: Dict[str, Dict[str, str]]) -> str:
        """Retorna o texto JSON produzido pelo modelo para o formato pedido."""
        raise NotImplementedError


class DisabledSuggestionService(SuggestionService):
    """Usado quando nao ha chave de API: toda chamada falha."""

    def generate(self, prompt: str, response_shape: Dict[str, Dict[str, str]]) -> str:
        raise SuggestionServiceError("API Key da IA nao configurada.", code="suggestion_disabled")
