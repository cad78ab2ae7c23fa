"""
FastAPI wiring for API key authentication.

Usage in routers:
    Auth = Annotated[ApiKey, Depends(require_api_key)]

    @router.post("/v1/messages")
    async def messages(auth: Auth) -> ...: ...

The dependency raises before the endpoint body runs, so a rejected request
never reaches the protected handler. register_auth_handlers() must be
called once on the app to turn AuthenticationError into the 401 body:

    {"error": {"type": "authentication_error", "message": "missing api key"}}
"""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from pool_gateway.auth.errors import INVALID_API_KEY, AuthenticationError
from pool_gateway.auth.gateway import ApiKeyGateway
from pool_gateway.schemas.api_key import ApiKey


async def require_api_key(request: Request) -> ApiKey:
    """FastAPI dependency — resolves the request's credential to an ApiKey."""
    gateway: ApiKeyGateway = request.app.state.gateway
    return await gateway.authenticate(request.headers)


async def authentication_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Render AuthenticationError as a 401 JSON body. No internal detail."""
    message = exc.message if isinstance(exc, AuthenticationError) else INVALID_API_KEY
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"error": {"type": "authentication_error", "message": message}},
    )


def register_auth_handlers(app: FastAPI) -> None:
    """Install the AuthenticationError → 401 handler on ``app``."""
    app.add_exception_handler(AuthenticationError, authentication_error_handler)
