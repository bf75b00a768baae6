from fastapi.responses import JSONResponse
from typing import Any, Optional

def ok(data: Any = None, **extra):
    return {"ok": True, "data": data, **extra}

def err(message: str, code: str = "bad_request", status: int = 400, details: Optional[Any] = None):
    return JSONResponse(
        status_code=status,
        content={"ok": False, "error": {"code": code, "message": message, "details": details}},
    )
