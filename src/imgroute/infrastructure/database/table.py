"""Key-value access to ``config_items``.

``ConfigTable`` offers the primitives the entity stores are built on:
point get/put/delete with optional existence preconditions, ordered
range queries over the secondary indexes with resumable pagination, and
all-or-nothing transactional writes.

Items are plain dicts keyed by column name. Columns that are NULL are
left out of returned items, and ``data`` is decoded from JSON.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import BaseModel
from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import OperationalError

from imgroute.infrastructure.database.errors import (
    ConditionalCheckFailedError,
    ThrottlingError,
    TransactionCanceledError,
)
from imgroute.infrastructure.database.schema import config_items

logger = logging.getLogger(__name__)

Item = dict[str, Any]

COLUMNS: frozenset[str] = frozenset(config_items.c.keys())
_BUSY_MARKERS = ("database is locked", "database is busy", "database table is locked")


class Condition(StrEnum):
    """Existence precondition on a single-item write."""

    EXISTS = "exists"
    NOT_EXISTS = "not_exists"


class TableIndex(StrEnum):
    """Secondary indexes available to :meth:`ConfigTable.query`."""

    BY_TYPE = "by_type"
    BY_ORIGIN = "by_origin"
    BY_POLICY = "by_policy"


_INDEX_COLUMNS = {
    TableIndex.BY_TYPE: config_items.c.entity_type,
    TableIndex.BY_ORIGIN: config_items.c.origin_ref,
    TableIndex.BY_POLICY: config_items.c.policy_ref,
}


class PageKey(BaseModel):
    """Resume position: the key of the last item of a page."""

    model_config = {"frozen": True, "extra": "forbid"}

    pk: str
    sort_key: str | None = None


@dataclass(frozen=True)
class QueryPage:
    items: list[Item] = field(default_factory=list)
    last_key: PageKey | None = None


@dataclass(frozen=True)
class Put:
    item: Item
    condition: Condition | None = None


@dataclass(frozen=True)
class Delete:
    pk: str
    condition: Condition | None = None


# ---------------------------------------------------------------------------
# Row conversion
# ---------------------------------------------------------------------------


def _to_row(item: Item) -> dict[str, Any]:
    unknown = set(item) - COLUMNS
    if unknown:
        msg = f"Unknown item attributes: {sorted(unknown)}"
        raise ValueError(msg)
    if "pk" not in item:
        msg = "Item has no primary key"
        raise ValueError(msg)
    row = {name: item.get(name) for name in COLUMNS}
    if row["data"] is not None:
        row["data"] = json.dumps(row["data"], separators=(",", ":"))
    return row


def _to_item(row: Any) -> Item:
    item = {name: value for name, value in row._mapping.items() if value is not None}
    raw = item.get("data")
    if raw is not None:
        try:
            item["data"] = json.loads(raw)
        except json.JSONDecodeError:
            # Left as text; record validation rejects it.
            logger.warning("Item %s has undecodable data", item.get("pk"))
    return item


def _after_sorted(key: PageKey) -> Any:
    """Rows ordered after *key* by ``(sort_key, pk)``; SQLite sorts NULL first."""
    sort_key = config_items.c.sort_key
    if key.sort_key is None:
        return or_(sort_key.is_not(None), config_items.c.pk > key.pk)
    return or_(
        sort_key > key.sort_key,
        and_(sort_key == key.sort_key, config_items.c.pk > key.pk),
    )


def _is_busy(exc: OperationalError) -> bool:
    text = str(exc.orig).lower()
    return any(marker in text for marker in _BUSY_MARKERS)


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------


class ConfigTable:
    """The shared configuration table behind every entity store."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def _begin(self) -> Iterator[Connection]:
        """One transaction; a locked database becomes :class:`ThrottlingError`."""
        try:
            with self._engine.begin() as conn:
                yield conn
        except OperationalError as exc:
            if _is_busy(exc):
                raise ThrottlingError(str(exc.orig)) from exc
            raise

    # -- point operations ---------------------------------------------------

    def get_item(self, pk: str) -> Item | None:
        with self._begin() as conn:
            row = conn.execute(select(config_items).where(config_items.c.pk == pk)).first()
        return None if row is None else _to_item(row)

    def put_item(self, item: Item, condition: Condition | None = None) -> None:
        """Write *item*, replacing every attribute of an existing one.

        Raises:
            ConditionalCheckFailedError: If *condition* does not hold.
        """
        with self._begin() as conn:
            if not self._put(conn, item, condition):
                raise ConditionalCheckFailedError(item["pk"])

    def delete_item(self, pk: str, condition: Condition | None = None) -> None:
        """Delete the item at *pk*.

        Raises:
            ConditionalCheckFailedError: If *condition* is ``EXISTS`` and
                nothing was stored at *pk*.
        """
        with self._begin() as conn:
            if not self._delete(conn, pk, condition):
                raise ConditionalCheckFailedError(pk)

    # -- queries -----------------------------------------------------------

    def query(
        self,
        index: TableIndex,
        value: str,
        *,
        limit: int,
        start_key: PageKey | None = None,
    ) -> QueryPage:
        """Return up to *limit* items whose *index* column equals *value*.

        ``by_type`` is ordered by ``(sort_key, pk)``; the reference indexes
        by ``pk``. Pass the returned ``last_key`` back as *start_key* to
        resume after the last item; it is ``None`` on the final page.
        """
        if limit < 1:
            msg = f"limit must be positive, got {limit}"
            raise ValueError(msg)
        column = _INDEX_COLUMNS[index]
        stmt = select(config_items).where(column == value)
        if index is TableIndex.BY_TYPE:
            stmt = stmt.order_by(config_items.c.sort_key, config_items.c.pk)
            if start_key is not None:
                stmt = stmt.where(_after_sorted(start_key))
        else:
            stmt = stmt.order_by(config_items.c.pk)
            if start_key is not None:
                stmt = stmt.where(config_items.c.pk > start_key.pk)

        with self._begin() as conn:
            rows = conn.execute(stmt.limit(limit + 1)).fetchall()

        items = [_to_item(row) for row in rows[:limit]]
        if len(rows) <= limit:
            return QueryPage(items=items)
        last = items[-1]
        sort_key = last.get("sort_key") if index is TableIndex.BY_TYPE else None
        return QueryPage(items=items, last_key=PageKey(pk=last["pk"], sort_key=sort_key))

    def exists(self, index: TableIndex, value: str) -> bool:
        """Whether any item has *value* in the *index* column."""
        column = _INDEX_COLUMNS[index]
        with self._begin() as conn:
            row = conn.execute(
                select(config_items.c.pk).where(column == value).limit(1)
            ).first()
        return row is not None

    # -- transactions ------------------------------------------------------

    def transact_write(self, operations: Sequence[Put | Delete]) -> None:
        """Apply *operations* atomically: all of them or none.

        Raises:
            TransactionCanceledError: At the first operation whose condition
                fails; everything before it is rolled back.
        """
        if not operations:
            msg = "transact_write needs at least one operation"
            raise ValueError(msg)
        with self._begin() as conn:
            for index, op in enumerate(operations):
                if isinstance(op, Put):
                    applied = self._put(conn, op.item, op.condition)
                else:
                    applied = self._delete(conn, op.pk, op.condition)
                if not applied:
                    reasons = ["None"] * len(operations)
                    reasons[index] = "ConditionalCheckFailed"
                    raise TransactionCanceledError(index, reasons)

    # -- internals ---------------------------------------------------------

    @staticmethod
    def _put(conn: Connection, item: Item, condition: Condition | None) -> bool:
        row = _to_row(item)
        if condition is Condition.NOT_EXISTS:
            stmt = insert(config_items).values(**row).on_conflict_do_nothing(index_elements=["pk"])
            return conn.execute(stmt).rowcount == 1
        if condition is Condition.EXISTS:
            pk = row.pop("pk")
            stmt = update(config_items).where(config_items.c.pk == pk).values(**row)
            return conn.execute(stmt).rowcount == 1
        values = {name: value for name, value in row.items() if name != "pk"}
        stmt = insert(config_items).values(**row).on_conflict_do_update(
            index_elements=["pk"], set_=values
        )
        conn.execute(stmt)
        return True

    @staticmethod
    def _delete(conn: Connection, pk: str, condition: Condition | None) -> bool:
        if condition is Condition.NOT_EXISTS:
            msg = "A delete can only be conditioned on existence"
            raise ValueError(msg)
        result = conn.execute(delete(config_items).where(config_items.c.pk == pk))
        return condition is None or result.rowcount == 1

    def close(self) -> None:
        self._engine.dispose()
