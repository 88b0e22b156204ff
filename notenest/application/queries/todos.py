from ulid import ULID

from ..projections.todos import TodoRow, TodoStore
from .cache import QueryCache


class TodoQueryService:
    def __init__(self, store: TodoStore, cache: QueryCache):
        self.store = store
        self.cache = cache

    async def get(self, todo_id: ULID) -> TodoRow | None:
        return await self.cache.get_or_load(("todo", todo_id), lambda: self.store.get(todo_id))

    async def list_all(self) -> list[TodoRow]:
        return await self.cache.get_or_load(("todo.all",), self.store.list_all)

    async def list_by_category(self, category_id: ULID | None) -> list[TodoRow]:
        return await self.cache.get_or_load(
            ("todo.category", category_id), lambda: self.store.list_by_category(category_id)
        )

    async def list_by_source_note(self, note_id: ULID) -> list[TodoRow]:
        # Uncached, read by event subscribers before the sync step invalidates
        return await self.store.list_by_source_note(note_id)
