from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def ok(data=None):
    """Standard success envelope. Pydantic models, times and datetimes are encoded to JSON types."""
    return {"ok": True, "data": jsonable_encoder(data), "error": None}


def created(data=None) -> JSONResponse:
    """201 Created with the success envelope."""
    return JSONResponse(status_code=201, content=ok(data))


def error(code: str = "internal_error", message: str = "An internal error occurred"):
    """Standard error envelope."""
    return {"ok": False, "data": None, "error": {"code": code, "message": message}}
