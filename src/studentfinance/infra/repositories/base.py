"""Shared helpers for whole-collection SQLModel repositories."""

from __future__ import annotations

from typing import Any, Iterable, Sequence, TypeVar

from sqlmodel import Session, SQLModel, select

from ...models.settings import AppSetting

ModelT = TypeVar("ModelT", bound=SQLModel)

_MARKER_PREFIX = "collection."


def mark_saved(session: Session, collection: str) -> None:
    """Record that ``collection`` has been written at least once."""

    key = f"{_MARKER_PREFIX}{collection}"
    if session.get(AppSetting, key) is None:
        session.add(AppSetting(key=key, value="saved"))


def was_saved(session: Session, collection: str) -> bool:
    return session.get(AppSetting, f"{_MARKER_PREFIX}{collection}") is not None


def overwrite_rows(
    session: Session,
    model: type[ModelT],
    rows: Sequence[ModelT],
    *criteria: Any,
) -> list[ModelT]:
    """Make the stored rows matching ``criteria`` equal to ``rows``.

    Rows missing from ``rows`` are deleted, the rest are merged so the
    caller's in-memory objects never get attached to this session.
    """

    keep = {row.id for row in rows}  # type: ignore[attr-defined]
    statement = select(model)
    for condition in criteria:
        statement = statement.where(condition)
    for existing in session.exec(statement).all():
        if existing.id not in keep:  # type: ignore[attr-defined]
            session.delete(existing)
    session.flush()
    return [session.merge(row) for row in rows]


def assign_positions(rows: Iterable[Any]) -> None:
    for index, row in enumerate(rows):
        row.position = index
