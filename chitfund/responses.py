"""
Uniform response envelope: {"success": true, ...payload} or
{"success": false, "error": message}.
"""
from fastapi.responses import JSONResponse


def ok(**payload) -> dict:
    return {"success": True, **payload}


def error_response(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)
