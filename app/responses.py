# app/responses.py
# Role: The JSON envelope every endpoint answers with:
#       {"status": bool, "message": str, "data": {...}}
#       Money in `data` is rendered as decimal strings.

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel


def success(data: BaseModel, message: str, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": True, "message": message, "data": data.model_dump(mode="json")},
    )


def error(message: str, data: Any = None, status_code: int = 400) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": False, "message": message, "data": jsonable_encoder(data or {})},
    )
