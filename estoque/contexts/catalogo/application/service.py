from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Tuple

from estoque.contexts.catalogo.application.form_flow import InsumoFormFlow
from estoque.contexts.catalogo.domain.store import TableStore, TableStoreError
from estoque.contexts.catalogo.infrastructure.entity_store import EntityStore
from estoque.critical_actions import confirmation_payload
from estoque.domain.contracts import (
    CatalogoSnapshot,
    Categoria,
    Insumo,
    InsumoDraft,
    InsumoExistente,
    InsumoInput,
    NovoInsumo,
    Unidade,
    clean_name,
    name_sort_key,
    parse_preco,
    strip_immutable_fields,
)
from estoque.errors import (
    DEFAULT_UNIQUE_MARKERS,
    AppError,
    ConfirmationRequiredError,
    DuplicateNameError,
    NotFoundError,
    StoreError,
    ValidationError,
    classify_store_failure,
)


logger = logging.getLogger(__name__)


_INSUMO_FIELDS = ("nome", "categoria", "unidade", "preco")


@dataclass(frozen=True)
class ReferenciaOrfa:
    insumo_id: str
    insumo_nome: str
    campo: str
    valor: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "insumo_id": self.insumo_id,
            "insumo_nome": self.insumo_nome,
            "campo": self.campo,
            "valor": self.valor,
        }


def _sorted_by_nome(items: Iterable[Any]) -> List[Any]:
    return sorted(items, key=lambda item: name_sort_key(item.nome))


def _replace_by_id(items: List[Any], updated: Any) -> List[Any]:
    return [updated if item.id == updated.id else item for item in items]


class CatalogManager:
    """Mantem insumos, categorias e unidades em memoria, sincronizados com o banco remoto.

    Toda mutacao passa primeiro pelo banco; a colecao local so muda com a
    linha canonica devolvida por ele.
    """

    def __init__(self, table_store: TableStore, *, unique_markers: Iterable[str] | None = None) -> None:
        self.table_store = table_store
        self.unique_markers = tuple(unique_markers or DEFAULT_UNIQUE_MARKERS)
        self.insumos_store: EntityStore[Insumo] = EntityStore(table_store, "insumos", Insumo.from_row)
        self.categorias_store: EntityStore[Categoria] = EntityStore(table_store, "categorias", Categoria.from_row)
        self.unidades_store: EntityStore[Unidade] = EntityStore(table_store, "unidades", Unidade.from_row)

        self._insumos: List[Insumo] = []
        self._categorias: List[Categoria] = []
        self._unidades: List[Unidade] = []
        self._carregado = False
        self.formulario = InsumoFormFlow(self)

    @property
    def insumos(self) -> Tuple[Insumo, ...]:
        return tuple(self._insumos)

    @property
    def categorias(self) -> Tuple[Categoria, ...]:
        return tuple(self._categorias)

    @property
    def unidades(self) -> Tuple[Unidade, ...]:
        return tuple(self._unidades)

    @property
    def carregado(self) -> bool:
        return self._carregado

    def snapshot(self) -> CatalogoSnapshot:
        return CatalogoSnapshot(insumos=self.insumos, categorias=self.categorias, unidades=self.unidades)

    def _store_failure(self, exc: TableStoreError, entity: str, action: str) -> AppError:
        kind = classify_store_failure(str(exc), code=exc.code, markers=self.unique_markers)
        logger.warning(
            "catalog_store_error",
            extra={
                "entity": entity,
                "action": action,
                "error_kind": kind,
                "store_code": exc.code,
                "details": str(exc),
            },
        )
        if kind == "duplicate_name":
            return DuplicateNameError(
                code=f"{entity}_duplicate",
                message_key=f"{entity}_duplicate",
                details=str(exc),
            )
        return StoreError(
            code=f"{entity}_{action}_failed",
            message_key=f"{entity}_{action}_failed",
            details=str(exc),
        )

    # --- carga ---

    def load_all(self) -> CatalogoSnapshot:
        stores = {
            "insumos": self.insumos_store,
            "categorias": self.categorias_store,
            "unidades": self.unidades_store,
        }
        results: Dict[str, list] = {}
        failures: List[Tuple[str, TableStoreError]] = []
        with ThreadPoolExecutor(max_workers=len(stores), thread_name_prefix="catalogo-load") as pool:
            futures = {name: pool.submit(store.list) for name, store in stores.items()}
            for name, future in futures.items():
                try:
                    results[name] = future.result()
                except TableStoreError as exc:
                    failures.append((name, exc))

        if failures:
            details = "; ".join(f"{name}: {exc}" for name, exc in failures)
            logger.warning(
                "catalog_load_failed",
                extra={"failed_tables": [name for name, _ in failures], "details": details},
            )
            raise StoreError(code="load_failed", message_key="load_failed", details=details) from failures[0][1]

        self._insumos = list(results["insumos"])
        self._categorias = list(results["categorias"])
        self._unidades = list(results["unidades"])
        self._carregado = True
        logger.info(
            "catalog_loaded",
            extra={
                "insumos": len(self._insumos),
                "categorias": len(self._categorias),
                "unidades": len(self._unidades),
            },
        )
        return self.snapshot()

    def contar_insumos(self) -> int:
        try:
            return self.insumos_store.count()
        except TableStoreError as exc:
            raise self._store_failure(exc, "insumo", "count") from exc

    # --- insumos ---

    def _validate_reference(self, field: str, value: str) -> None:
        if not self._carregado:
            return
        known = self._categorias if field == "categoria" else self._unidades
        if value not in {item.nome for item in known}:
            raise ValidationError(
                code=f"{field}_unknown",
                message_key=f"{field}_unknown",
                details=f"{field}={value!r}",
            )

    def _insumo_payload(self, fields: Dict[str, Any], *, partial: bool) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        for field in ("nome", "categoria", "unidade"):
            if partial and field not in fields:
                continue
            value = clean_name(fields.get(field))
            if not value:
                raise ValidationError(code=f"{field}_required", message_key=f"{field}_required")
            if field != "nome":
                self._validate_reference(field, value)
            payload[field] = value

        if "preco" in fields and fields["preco"] not in (None, ""):
            payload["preco"] = str(parse_preco(fields["preco"]))
        elif not partial:
            payload["preco"] = "0.00"
        return payload

    def add_insumo(self, draft: InsumoDraft | Dict[str, Any]) -> Insumo:
        fields = draft.to_dict() if isinstance(draft, InsumoDraft) else dict(draft or {})
        payload = self._insumo_payload(fields, partial=False)
        try:
            created = self.insumos_store.insert(payload)
        except TableStoreError as exc:
            raise self._store_failure(exc, "insumo", "add") from exc
        self._insumos = _sorted_by_nome([*self._insumos, created])
        logger.info("insumo_created", extra={"insumo_id": created.id})
        return created

    def update_insumo(self, insumo_id: str, patch: InsumoDraft | Dict[str, Any]) -> Insumo:
        raw = patch.to_dict() if isinstance(patch, InsumoDraft) else dict(patch or {})
        fields = {key: value for key, value in strip_immutable_fields(raw).items() if key in _INSUMO_FIELDS}
        payload = self._insumo_payload(fields, partial=True)
        if not payload:
            raise ValidationError(code="no_changes", message_key="no_changes")
        try:
            updated = self.insumos_store.update(insumo_id, payload)
        except TableStoreError as exc:
            raise self._store_failure(exc, "insumo", "update") from exc
        if updated is None:
            raise NotFoundError(code="insumo_not_found", message_key="insumo_not_found", details=str(insumo_id))
        if any(item.id == updated.id for item in self._insumos):
            self._insumos = _replace_by_id(self._insumos, updated)
        else:
            self._insumos = _sorted_by_nome([*self._insumos, updated])
        logger.info("insumo_updated", extra={"insumo_id": updated.id})
        return updated

    def delete_insumo(self, insumo_id: str, *, confirmado: bool = False) -> None:
        self._require_confirmation("delete_insumo", confirmado)
        try:
            self.insumos_store.delete(insumo_id)
        except TableStoreError as exc:
            raise self._store_failure(exc, "insumo", "delete") from exc
        self._insumos = [item for item in self._insumos if item.id != insumo_id]
        logger.info("insumo_deleted", extra={"insumo_id": insumo_id})

    def salvar_insumo(self, entrada: InsumoInput) -> Insumo:
        if isinstance(entrada, NovoInsumo):
            return self.add_insumo(entrada.draft)
        if isinstance(entrada, InsumoExistente):
            return self.update_insumo(entrada.id, entrada.patch)
        raise TypeError(f"Entrada de insumo nao suportada: {type(entrada).__name__}")

    # --- categorias e unidades ---

    @staticmethod
    def _require_confirmation(action_key: str, confirmado: bool) -> None:
        if confirmado is True:
            return
        raise ConfirmationRequiredError(payload=confirmation_payload(action_key))

    @staticmethod
    def _required_name(nome: object | None) -> str:
        value = clean_name(nome)
        if not value:
            raise ValidationError(code="nome_required", message_key="nome_required")
        return value

    def _add_named(self, entity: str, store: EntityStore, attr: str, nome: object | None):
        value = self._required_name(nome)
        try:
            created = store.insert({"nome": value})
        except TableStoreError as exc:
            raise self._store_failure(exc, entity, "add") from exc
        setattr(self, attr, _sorted_by_nome([*getattr(self, attr), created]))
        logger.info(f"{entity}_created", extra={f"{entity}_id": created.id})
        return created

    def _update_named(self, entity: str, store: EntityStore, attr: str, row_id: str, nome: object | None):
        value = self._required_name(nome)
        try:
            updated = store.update(row_id, {"nome": value})
        except TableStoreError as exc:
            raise self._store_failure(exc, entity, "update") from exc
        if updated is None:
            raise NotFoundError(code=f"{entity}_not_found", message_key=f"{entity}_not_found", details=str(row_id))
        setattr(self, attr, _replace_by_id(getattr(self, attr), updated))
        logger.info(f"{entity}_updated", extra={f"{entity}_id": updated.id})
        return updated

    def _delete_named(self, entity: str, store: EntityStore, attr: str, row_id: str, confirmado: bool) -> None:
        self._require_confirmation(f"delete_{entity}", confirmado)
        try:
            store.delete(row_id)
        except TableStoreError as exc:
            raise self._store_failure(exc, entity, "delete") from exc
        setattr(self, attr, [item for item in getattr(self, attr) if item.id != row_id])
        logger.info(f"{entity}_deleted", extra={f"{entity}_id": row_id})

    def add_categoria(self, nome: str) -> Categoria:
        return self._add_named("categoria", self.categorias_store, "_categorias", nome)

    def update_categoria(self, categoria_id: str, nome: str) -> Categoria:
        return self._update_named("categoria", self.categorias_store, "_categorias", categoria_id, nome)

    def delete_categoria(self, categoria_id: str, *, confirmado: bool = False) -> None:
        self._delete_named("categoria", self.categorias_store, "_categorias", categoria_id, confirmado)

    def add_unidade(self, nome: str) -> Unidade:
        return self._add_named("unidade", self.unidades_store, "_unidades", nome)

    def update_unidade(self, unidade_id: str, nome: str) -> Unidade:
        return self._update_named("unidade", self.unidades_store, "_unidades", unidade_id, nome)

    def delete_unidade(self, unidade_id: str, *, confirmado: bool = False) -> None:
        self._delete_named("unidade", self.unidades_store, "_unidades", unidade_id, confirmado)

    # Renomear categoria/unidade nao propaga para os insumos; aqui so se reporta.
    def referencias_orfas(self) -> List[ReferenciaOrfa]:
        categorias = {item.nome for item in self._categorias}
        unidades = {item.nome for item in self._unidades}
        orfas: List[ReferenciaOrfa] = []
        for insumo in self._insumos:
            if insumo.categoria not in categorias:
                orfas.append(ReferenciaOrfa(insumo.id, insumo.nome, "categoria", insumo.categoria))
            if insumo.unidade not in unidades:
                orfas.append(ReferenciaOrfa(insumo.id, insumo.nome, "unidade", insumo.unidade))
        return orfas
