"""Items API: JSON CRUD with route modules loaded from a directory.

Demonstrates the pieces working together: a startup hook seeding the
store, an app-level middleware writing shared state, controllers
returning ``HttpResponse`` values in camelCase while clients speak
snake_case, and ``routes/`` modules registered through ``setup(group)``.

Run:
    cd examples/items_api && python app.py
"""

import logging
import threading
from dataclasses import dataclass, replace
from pathlib import Path

import anyio

from relay import HttpServer, ServerConfig


# ---------------------------------------------------------------------------
# In-memory storage
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Item:
    item_id: int
    title: str
    done: bool = False


class ItemStore:
    __slots__ = ("_items", "_lock", "_next_id")

    def __init__(self) -> None:
        self._items: dict[int, Item] = {}
        self._lock = threading.Lock()
        self._next_id = 1

    def add(self, title: str) -> Item:
        with self._lock:
            item = Item(item_id=self._next_id, title=title)
            self._items[item.item_id] = item
            self._next_id += 1
            return item

    def get(self, item_id: int) -> Item | None:
        return self._items.get(item_id)

    def update(self, item: Item, **changes: object) -> Item:
        with self._lock:
            updated = replace(item, **changes)
            self._items[item.item_id] = updated
            return updated

    def remove(self, item_id: int) -> Item | None:
        with self._lock:
            return self._items.pop(item_id, None)

    def all(self) -> list[Item]:
        return sorted(self._items.values(), key=lambda item: item.item_id)


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


class ProvideStore:
    """Puts the store into every request's shared state."""

    __slots__ = ("store",)

    def __init__(self, store: ItemStore) -> None:
        self.store = store

    async def handle(self, request, state, next):
        _, set_state = state
        set_state({"store": self.store})
        await next()


async def build_server(config: ServerConfig | None = None) -> HttpServer:
    store = ItemStore()
    server = HttpServer(config or ServerConfig(port=3000, base_url="/api"))

    def seed() -> None:
        store.add("Read the docs")

    server.on_start([seed])
    server.use(ProvideStore(store))
    await server.routes_directory(Path(__file__).parent / "routes")
    return server


async def main() -> None:
    server = await build_server()
    await server.listen_async(callback=lambda: print(f"Listening on {server.address()}"))
    try:
        await anyio.sleep_forever()
    finally:
        server.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    anyio.run(main)
