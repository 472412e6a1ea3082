from typing import TypeVar

import msgspec
from litestar.connection import Request
from litestar.exceptions import ClientException, HTTPException
from litestar.status_codes import HTTP_415_UNSUPPORTED_MEDIA_TYPE

T = TypeVar("T")

SUPPORTED_MEDIA_TYPES = ["application/json"]


def _content_type(request: Request) -> str:
    return (request.headers.get("content-type") or "").split(";")[0].strip().lower()


async def decode_json_body(request: Request, type_: type[T]) -> T:
    """Decode the request body as JSON into ``type_``.

    Non-JSON content types raise a 415; unparseable JSON and JSON of the
    wrong shape raise a 400.
    """
    content_type = _content_type(request)
    if "json" not in content_type:
        raise HTTPException(
            status_code=HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="Content-Type not supported. Please use application/json",
            extra={"contentType": content_type or None, "supportedMediaTypes": SUPPORTED_MEDIA_TYPES},
        )

    raw = await request.body()
    try:
        return msgspec.json.decode(raw, type=type_)
    except msgspec.ValidationError as e:
        raise ClientException("Malformed JSON request") from e
    except msgspec.DecodeError as e:
        raise ClientException("Invalid JSON format. Please check your request body.") from e
