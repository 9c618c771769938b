from __future__ import annotations

from typing import Any, Callable, Dict, Generic, List, TypeVar

from estoque.contexts.catalogo.domain.store import TableStore, TableStoreError
from estoque.domain.contracts import strip_immutable_fields
from estoque.observability import observe_store_operation


T = TypeVar("T")


class EntityStore(Generic[T]):
    """Proxy CRUD de uma tabela: converte linhas remotas em entidades e vice-versa."""

    def __init__(
        self,
        table_store: TableStore,
        table: str,
        from_row: Callable[[Dict[str, Any]], T],
        *,
        order_by: str = "nome",
    ) -> None:
        self.table_store = table_store
        self.table = table
        self.order_by = order_by
        self._from_row = from_row

    def _call(self, operation: str, fn: Callable[[], Any]) -> Any:
        try:
            result = fn()
        except TableStoreError:
            observe_store_operation(self.table, operation, "error")
            raise
        observe_store_operation(self.table, operation, "ok")
        return result

    def list(self) -> List[T]:
        rows = self._call("select", lambda: self.table_store.select(self.table, order_by=self.order_by))
        return [self._from_row(row) for row in rows]

    def insert(self, payload: Dict[str, Any]) -> T:
        row = strip_immutable_fields(payload)
        return self._from_row(self._call("insert", lambda: self.table_store.insert(self.table, row)))

    def update(self, row_id: str, patch: Dict[str, Any]) -> T | None:
        changes = strip_immutable_fields(patch)
        row = self._call("update", lambda: self.table_store.update(self.table, row_id, changes))
        if row is None:
            return None
        return self._from_row(row)

    def delete(self, row_id: str) -> None:
        self._call("delete", lambda: self.table_store.delete(self.table, row_id))

    def count(self) -> int:
        return int(self._call("count", lambda: self.table_store.count(self.table)))
