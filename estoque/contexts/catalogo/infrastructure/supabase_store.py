from __future__ import annotations

import logging
from typing import Any, Dict, List

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from estoque.contexts.catalogo.domain.store import TableStore, TableStoreError


logger = logging.getLogger(__name__)


def _api_error(exc: APIError) -> TableStoreError:
    message = str(getattr(exc, "message", None) or exc)
    code = getattr(exc, "code", None)
    return TableStoreError(message, code=str(code) if code else None)


class SupabaseTableStore(TableStore):
    def __init__(self, url: str | None = None, key: str | None = None, *, client: Client | None = None) -> None:
        if client is None:
            if not url or not key:
                raise TableStoreError("SUPABASE_URL/SUPABASE_KEY nao configurados.")
            client = create_client(url, key)
        self._client = client

    def _execute(self, table: str, operation: str, query) -> Any:
        try:
            return query.execute()
        except APIError as exc:
            raise _api_error(exc) from exc
        except httpx.HTTPError as exc:
            logger.warning("supabase_http_error", extra={"table": table, "operation": operation})
            raise TableStoreError(f"Erro de conexao com o banco: {exc}") from exc

    def select(self, table: str, *, order_by: str = "nome") -> List[Dict[str, Any]]:
        query = self._client.table(table).select("*").order(order_by, desc=False)
        response = self._execute(table, "select", query)
        return [row for row in (response.data or []) if isinstance(row, dict)]

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        response = self._execute(table, "insert", self._client.table(table).insert(row))
        rows = response.data or []
        if not rows:
            raise TableStoreError(f"Banco nao retornou a linha inserida em {table}.")
        return rows[0]

    def update(self, table: str, row_id: str, patch: Dict[str, Any]) -> Dict[str, Any] | None:
        query = self._client.table(table).update(patch).eq("id", row_id)
        response = self._execute(table, "update", query)
        rows = response.data or []
        return rows[0] if rows else None

    def delete(self, table: str, row_id: str) -> None:
        self._execute(table, "delete", self._client.table(table).delete().eq("id", row_id))

    def count(self, table: str) -> int:
        query = self._client.table(table).select("*", count="exact", head=True)
        response = self._execute(table, "count", query)
        return int(response.count or 0)
