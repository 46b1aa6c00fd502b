"""CRUD controllers for /items."""

from relay.helpers import bad_request, created, not_found, ok


def _to_dict(item) -> dict:
    return {"itemId": item.item_id, "title": item.title, "done": item.done}


class ListItems:
    async def handle(self, request, state, next):
        view, _ = state
        items = view["store"].all()
        limit = int(request.query.get("limit", 50))
        return ok({"data": [_to_dict(item) for item in items[:limit]], "totalCount": len(items)})


class GetItem:
    async def handle(self, request, state, next):
        view, _ = state
        item = view["store"].get(request.params["itemId"])
        return ok({"data": _to_dict(item)}) if item else not_found("Item not found")


class CreateItem:
    async def handle(self, request, state, next):
        view, _ = state
        title = str(request.body.get("title", "")).strip() if isinstance(request.body, dict) else ""
        if not title:
            return bad_request("title is required")
        item = view["store"].add(title)
        return created({"data": _to_dict(item)}, {"Location": f"{request.base_url}/items/{item.item_id}"})


class UpdateItem:
    async def handle(self, request, state, next):
        view, _ = state
        store = view["store"]
        item = store.get(request.params["itemId"])
        if item is None:
            return not_found("Item not found")
        changes = {key: request.body[key] for key in ("title", "done") if key in request.body}
        return ok({"data": _to_dict(store.update(item, **changes))})


class DeleteItem:
    async def handle(self, request, state, next):
        view, _ = state
        item = view["store"].remove(request.params["itemId"])
        return ok({"data": _to_dict(item)}) if item else not_found("Item not found")


def setup(group):
    group.get("/items", ListItems())
    group.post("/items", CreateItem())
    group.get("/items/{item_id:int}", GetItem())
    group.patch("/items/{item_id:int}", UpdateItem())
    group.delete("/items/{item_id:int}", DeleteItem())
