"""Tests for the SQLite todo view."""

from datetime import date

import pytest
from ulid import ULID

from notenest.application.projections import TodoRow
from notenest.domain import Priority, utc_now


@pytest.fixture
def todo_store(initialized_config):
    return initialized_config.todo_store


def _row(text: str, **fields) -> TodoRow:
    now = utc_now()
    return TodoRow(id=ULID(), text=text, created_at=now, modified_at=now, **fields)


@pytest.mark.asyncio
async def test_round_trip(todo_store):
    row = _row(
        "Buy milk",
        tags=["home", "errand"],
        due_date=date(2026, 5, 1),
        priority=Priority.URGENT,
        is_favorite=True,
    )
    await todo_store.upsert(row)

    assert await todo_store.get(row.id) == row


@pytest.mark.asyncio
async def test_listing_by_category_and_note(todo_store):
    category_id, note_id = ULID(), ULID()
    filed = _row("Filed", category_id=category_id)
    loose = _row("Loose")
    extracted = _row("Extracted", source_note_id=note_id)
    for row in (filed, loose, extracted):
        await todo_store.upsert(row)

    assert [r.text for r in await todo_store.list_by_category(category_id)] == ["Filed"]
    assert [r.text for r in await todo_store.list_by_category(None)] == ["Loose", "Extracted"]
    assert [r.text for r in await todo_store.list_by_source_note(note_id)] == ["Extracted"]
    assert len(await todo_store.list_all()) == 3


@pytest.mark.asyncio
async def test_delete_and_clear(todo_store):
    first, second = _row("a"), _row("b")
    await todo_store.upsert(first)
    await todo_store.upsert(second)

    await todo_store.delete(first.id)
    assert await todo_store.get(first.id) is None

    await todo_store.clear()
    assert await todo_store.list_all() == []
