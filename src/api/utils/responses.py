"""orjson-backed JSON responses.

``ORJSONResponse`` is the application's default response class. Keys are
sorted for stable output; ``Decimal`` amounts that reach it outside a
response model are rendered as strings so cents are never lost to floats.
"""

from decimal import Decimal
from typing import Any

import orjson
from fastapi.responses import JSONResponse
from pydantic import BaseModel


def _default(value: object) -> str:
    if isinstance(value, Decimal):
        return str(value)
    msg = f"Type is not JSON serializable: {type(value).__name__}"
    raise TypeError(msg)


class ORJSONResponse(JSONResponse):
    """FastAPI Response class using orjson for JSON serialization."""

    media_type = "application/json"

    def render(self, content: Any) -> bytes:  # noqa: ANN401 - any JSON content
        """Render the content as JSON using orjson.

        Args:
            content: The content to serialize to JSON.

        Returns:
            bytes: The JSON-encoded bytes.
        """
        if isinstance(content, BaseModel):
            content = content.model_dump(mode="json")

        return orjson.dumps(content, option=orjson.OPT_SORT_KEYS, default=_default)
