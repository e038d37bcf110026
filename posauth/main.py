#!/usr/bin/env python3
"""
posauth - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes modules
3. Serves the register-facing auth API

All authentication logic is in the modules, following black box principles.
The transport owns the session cookie; the auth service only issues and
checks token values.
"""

import logging
import logging.config as log_config
from contextlib import asynccontextmanager
from typing import Optional

import redis.asyncio as redis
import uvicorn
from fastapi import Cookie, FastAPI, HTTPException, Response
from fastapi.responses import JSONResponse

from posauth.config.provider import ConfigProvider, EnvConfigProvider
from posauth.logging_config import get_logging_config
from posauth.modules.api import (
    ErrorResponse,
    HeartbeatResponse,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    UserModel,
    ValidateResponse,
)
from posauth.modules.auth import AuthenticationService, AuthErrorKind, AuthFactory, AuthFailure
from posauth.modules.config import get_config

# Get configuration
config = get_config()

log_config.dictConfig(get_logging_config(config.get("log_level")))
logger = logging.getLogger(__name__)

# Configuration provider (centralized policy access)
config_provider: ConfigProvider = EnvConfigProvider()
session_config = config_provider.get_session_config()
terminal_config = config_provider.get_terminal_config()

SESSION_COOKIE = "session_token"

# Module instances (initialized at startup)
auth_service: Optional[AuthenticationService] = None
redis_client: Optional[redis.Redis] = None

LOGIN_FAILURE_STATUS = {
    AuthErrorKind.EMPLOYEE_NOT_FOUND: 401,
    AuthErrorKind.INVALID_PIN: 401,
    AuthErrorKind.ACCOUNT_LOCKED: 423,
    AuthErrorKind.ALREADY_LOGGED_IN: 409,
}


async def get_redis_client() -> redis.Redis:
    """Create Redis client from configuration."""
    return redis.from_url(
        config.redis_url,
        password=config.get("redis_password"),
        encoding="utf-8",
        decode_responses=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle - initialize and cleanup resources.
    """
    global auth_service, redis_client

    logger.info("Starting posauth API...")

    redis_client = await get_redis_client()
    auth_service = AuthFactory.build(config_provider, redis_client)
    logger.info(f"Authentication service initialized for registers {terminal_config.registers}")

    yield

    logger.info("Shutting down posauth API...")
    if redis_client:
        await redis_client.aclose()
    logger.info("posauth API shutdown complete")


app = FastAPI(
    title="posauth API",
    description="Terminal-bound employee authentication for point-of-sale registers",
    version="1.0.0",
    lifespan=lifespan,
)


def _service() -> AuthenticationService:
    if not auth_service:
        raise HTTPException(503, "Service not initialized")
    return auth_service


def _error(status_code: int, error: str, message: Optional[str] = None,
           conflicting_terminal: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, message=message, conflicting_terminal=conflicting_terminal)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=session_config.cookie_max_age_seconds,
        httponly=True,
        secure=config.is_production,
        samesite="strict",
    )


# Auth Endpoints


@app.post("/api/auth/login", response_model=LoginResponse, response_model_by_alias=True)
async def login(request: LoginRequest, response: Response):
    """
    Authenticate an employee at a register.

    Returns:
        200: Logged in, session cookie set
        400: Malformed request
        401: Unknown employee or wrong PIN
        409: Employee is live on another register
        423: Account locked
        500: Login system error
    """
    invalid = request.validation_error(terminal_config)
    if invalid:
        code, message = invalid
        return _error(400, code, message)

    result = await _service().login(request.employee_id, request.pin, request.register_id)

    if isinstance(result, AuthFailure):
        status_code = LOGIN_FAILURE_STATUS.get(result.kind, 500)
        return _error(status_code, result.kind.value, result.message, result.conflicting_terminal)

    _set_session_cookie(response, result.token)
    return LoginResponse(
        user=UserModel(**vars(result.user)),
        terminal=result.terminal,
        login_time=result.login_time,
        message=result.message,
    )


@app.post("/api/auth/logout", response_model=LogoutResponse, response_model_by_alias=True)
async def logout(response: Response, session_token: Optional[str] = Cookie(None)):
    """
    End the caller's session. Logging out twice is not an error.

    Returns:
        200: Logged out
        500: Store failure
    """
    if session_token:
        result = await _service().logout(session_token)
        if isinstance(result, AuthFailure):
            return _error(500, result.kind.value, "Error during logout")

    response.delete_cookie(SESSION_COOKIE)
    return LogoutResponse()


@app.get("/api/auth/validate", response_model=ValidateResponse, response_model_by_alias=True,
         response_model_exclude_none=True)
async def validate_session(session_token: Optional[str] = Cookie(None)):
    """
    Validate the caller's session and refresh its activity.

    Returns:
        200: Session valid
        401: No session, unknown session or expired session
        500: Store failure
    """
    if not session_token:
        return JSONResponse(
            status_code=401,
            content={"valid": False, "error": "NO_SESSION", "message": "No session token found"},
        )

    result = await _service().validate(session_token)

    if isinstance(result, AuthFailure):
        if result.kind == AuthErrorKind.AUTHENTICATION_ERROR:
            return JSONResponse(
                status_code=500,
                content={
                    "valid": False,
                    "error": result.kind.value,
                    "message": "Error validating session",
                },
            )

        body = JSONResponse(
            status_code=401,
            content={"valid": False, "error": result.kind.value, "message": "Session invalid"},
        )
        body.delete_cookie(SESSION_COOKIE)
        return body

    return ValidateResponse(valid=True, user=UserModel(**vars(result.user)))


@app.post("/api/auth/heartbeat", response_model=HeartbeatResponse, response_model_by_alias=True)
async def heartbeat(session_token: Optional[str] = Cookie(None)):
    """
    Keep the caller's session alive.

    Returns:
        200: Activity refreshed
        401: No session or unknown session
        500: Store failure
    """
    if not session_token:
        return _error(401, "NO_SESSION")

    result = await _service().heartbeat(session_token)

    if isinstance(result, AuthFailure):
        status_code = 500 if result.kind == AuthErrorKind.AUTHENTICATION_ERROR else 401
        return _error(status_code, result.kind.value)

    return HeartbeatResponse(timestamp=result.timestamp)


# Health/Monitoring Endpoints


@app.get("/healthz")
async def healthz():
    """
    Minimal health check endpoint for container probes.

    Returns:
        200: Service is running
    """
    return {"status": "ok"}


@app.get("/health")
async def health_check():
    """
    Readiness check: the auth service is wired and the account store answers.

    Returns:
        200: Ready to authenticate
        503: Store unreachable or service not initialized
    """
    store = "not configured"
    if redis_client is not None:
        try:
            await redis_client.ping()
            store = "connected"
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning(f"Account store ping failed: {e}")
            store = "unreachable"

    ready = store == "connected" and auth_service is not None
    body = {
        "status": "ready" if ready else "unavailable",
        "store": store,
        "service": "initialized" if auth_service else "not initialized",
        "registers": terminal_config.registers,
    }
    return JSONResponse(status_code=200 if ready else 503, content=body)


# Error handlers


@app.exception_handler(redis.ConnectionError)
async def redis_error_handler(request, exc):
    """Handle Redis connection errors."""
    logger.error(f"Redis connection error: {exc}")
    return JSONResponse(status_code=503, content={"error": "Database connection failed"})


@app.exception_handler(ValueError)
async def validation_error_handler(request, exc):
    """Handle validation errors."""
    logger.error(f"Validation error: {exc}")
    return JSONResponse(status_code=400, content={"error": str(exc)})


def run():
    """Console entry point."""
    uvicorn.run(
        "posauth.main:app",
        host=config.get("host"),
        port=config.get("port"),
        log_level=config.get("log_level").lower(),
        reload=config.get("debug"),
        log_config=get_logging_config(config.get("log_level")),
    )


if __name__ == "__main__":
    run()
