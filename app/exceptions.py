from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

class APIException(HTTPException):
    status_code_default = 500
    message_default = "Internal server error"

    def __init__(self, detail: str | None = None, status_code: int | None = None):
        super().__init__(status_code=status_code or self.status_code_default, detail=detail or self.message_default)

class ValidationError(APIException):
    status_code_default = 400
    message_default = "Invalid request"

class Conflict(APIException):
    status_code_default = 400
    message_default = "User already exists"

class Unauthorized(APIException):
    status_code_default = 401
    message_default = "Not authenticated"

class NotFound(APIException):
    status_code_default = 404
    message_default = "Not found"

class DeliveryError(APIException):
    status_code_default = 500
    message_default = "Failed to send OTP email. Please contact support."

def create_error_response(error_message: str) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "message": error_message,
    }

async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # Convert 403 from HTTPBearer to 401 for missing authentication
    if exc.status_code == 403 and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response("Not authenticated")
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query"))
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content=create_error_response(message))
