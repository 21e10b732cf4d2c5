"""Response envelope shared by all routers: {success, message?, data?}."""
import math
from typing import Any
from pydantic import BaseModel


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


def paginate_meta(page: int, limit: int, total: int) -> PaginationMeta:
    return PaginationMeta(page=page, limit=limit, total=total, pages=math.ceil(total / limit) if limit else 0)


def success_response(data: Any = None, message: str | None = None) -> dict:
    body: dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = _jsonable(data)
    return body


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value
