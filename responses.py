"""Success envelope helpers shared by all route modules."""
import math

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _dump(data):
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True)
    if isinstance(data, list):
        return [_dump(item) for item in data]
    return data


def ok(data=None, message: str = None) -> dict:
    body = {"success": True}
    if data is not None:
        body["data"] = jsonable_encoder(_dump(data))
    if message:
        body["message"] = message
    return body


def created(data=None, message: str = None) -> JSONResponse:
    return JSONResponse(status_code=201, content=ok(data, message))


def total_pages(total_items: int, page_size: int) -> int:
    if page_size <= 0:
        return 0
    return math.ceil(total_items / page_size)


def paginated(items, page: int, page_size: int, total_items: int, **extra) -> dict:
    body = {
        "success": True,
        "data": jsonable_encoder(_dump(list(items))),
        "page": page,
        "pageSize": page_size,
        "totalItems": total_items,
        "totalPages": total_pages(total_items, page_size),
    }
    body.update(extra)
    return body
