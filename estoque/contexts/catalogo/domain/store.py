from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List


class TableStoreError(RuntimeError):
    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = str(code or "").strip() or None


class TableStore(ABC):
    """CRUD por linha sobre colecoes nomeadas do banco remoto."""

    @abstractmethod
    def select(self, table: str, *, order_by: str = "nome") -> List[Dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def update(self, table: str, row_id: str, patch: Dict[str, Any]) -> Dict[str, Any] | None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, table: str, row_id: str) -> None:
        raise NotImplementedError

    def count(self, table: str) -> int:
        return len(self.select(table, order_by="id"))
