from __future__ import annotations

import copy
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping

from estoque.contexts.catalogo.domain.store import TableStore, TableStoreError
from estoque.domain.contracts import name_sort_key
from estoque.errors import UNIQUE_VIOLATION_CODE


DEFAULT_UNIQUE_COLUMNS: Dict[str, tuple[str, ...]] = {
    "categorias": ("nome",),
    "unidades": ("nome",),
}

DEMO_ROWS: Dict[str, List[Dict[str, Any]]] = {
    "categorias": [
        {"nome": "Graos"},
        {"nome": "Laticinios"},
        {"nome": "Limpeza"},
        {"nome": "Escritorio"},
    ],
    "unidades": [
        {"nome": "kg"},
        {"nome": "L"},
        {"nome": "unidade"},
        {"nome": "resma"},
    ],
    "insumos": [
        {"nome": "Farinha de Trigo", "categoria": "Graos", "unidade": "kg", "preco": "12.50"},
        {"nome": "Leite Integral", "categoria": "Laticinios", "unidade": "L", "preco": "5.49"},
        {"nome": "Detergente", "categoria": "Limpeza", "unidade": "L", "preco": "3.20"},
        {"nome": "Papel A4", "categoria": "Escritorio", "unidade": "resma", "preco": "27.90"},
    ],
}


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class InMemoryTableStore(TableStore):
    """Banco local deterministico, usado em desenvolvimento e nos testes."""

    def __init__(
        self,
        unique_columns: Mapping[str, Iterable[str]] | None = None,
        seed: Mapping[str, Iterable[Dict[str, Any]]] | None = None,
    ) -> None:
        source = DEFAULT_UNIQUE_COLUMNS if unique_columns is None else unique_columns
        self._unique_columns = {table: tuple(columns) for table, columns in source.items()}
        self._tables: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()
        for table, rows in (seed or {}).items():
            for row in rows:
                self.insert(table, row)

    def _rows(self, table: str) -> Dict[str, Dict[str, Any]]:
        return self._tables.setdefault(table, {})

    def _check_unique(self, table: str, candidate: Dict[str, Any], ignore_id: str | None = None) -> None:
        for column in self._unique_columns.get(table, ()):
            if column not in candidate:
                continue
            value = candidate[column]
            for row_id, row in self._rows(table).items():
                if row_id == ignore_id:
                    continue
                if row.get(column) == value:
                    raise TableStoreError(
                        f'duplicate key value violates unique constraint "{table}_{column}_key"',
                        code=UNIQUE_VIOLATION_CODE,
                    )

    def select(self, table: str, *, order_by: str = "nome") -> List[Dict[str, Any]]:
        with self._lock:
            rows = [copy.deepcopy(row) for row in self._rows(table).values()]
        return sorted(rows, key=lambda row: (name_sort_key(row.get(order_by)), str(row.get("id"))))

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            record = {key: value for key, value in dict(row or {}).items() if key not in ("id", "created_at")}
            self._check_unique(table, record)
            record["id"] = str(uuid.uuid4())
            record["created_at"] = _iso_now()
            self._rows(table)[record["id"]] = record
            return copy.deepcopy(record)

    def update(self, table: str, row_id: str, patch: Dict[str, Any]) -> Dict[str, Any] | None:
        with self._lock:
            current = self._rows(table).get(str(row_id))
            if current is None:
                return None
            changes = {key: value for key, value in dict(patch or {}).items() if key not in ("id", "created_at")}
            self._check_unique(table, changes, ignore_id=str(row_id))
            current.update(changes)
            return copy.deepcopy(current)

    def delete(self, table: str, row_id: str) -> None:
        with self._lock:
            self._rows(table).pop(str(row_id), None)

    def count(self, table: str) -> int:
        with self._lock:
            return len(self._rows(table))


def build_demo_store() -> InMemoryTableStore:
    return InMemoryTableStore(seed=DEMO_ROWS)
