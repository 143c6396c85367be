"""Request context middleware for logging."""
import time
import uuid
from typing import Any
from typing import Callable

from fastapi import Request
from jose import jwt
from jose import JWTError
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from cicd_api.monitoring.logger import log_request_info


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware to capture and log request context information."""

    async def dispatch(self, request: Request, call_next: Callable) -> Any:
        """
        Capture request context and add it to every log line of the request.

        Captures:
        - Request ID (from X-Request-ID header or generated)
        - Client IP (first hop of X-Forwarded-For, or the direct peer)
        - User identity (username and scm context claimed by the bearer token)
        - Request method and path
        """
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        client_ip = self._get_client_ip(request)
        user_identity = self._get_user_identity(request)
        request_path = f"{request.method} {request.url.path}"

        with logger.contextualize(
            request_id=request_id,
            client_ip=client_ip,
            user_identity=user_identity,
            request_path=request_path,
        ):
            log_request_info(request)

            start_time = time.time()
            response = await call_next(request)
            duration_ms = (time.time() - start_time) * 1000

            # Errors are logged separately by the handlers in errors.py
            logger.info(
                "{} {} - {}",
                request.method,
                request.url.path,
                response.status_code,
                event_type="http_request",
                http_method=request.method,
                url_path=str(request.url.path),
                status_code=response.status_code,
                response_time_ms=round(duration_ms, 2),
            )

            response.headers["X-Request-ID"] = request_id
            return response

    def _get_client_ip(self, request: Request) -> str:
        """Get the originating client IP, honouring a proxy's X-Forwarded-For."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            # X-Forwarded-For can contain multiple IPs, take the first one
            return forwarded_for.split(",")[0].strip()

        if request.client:
            return request.client.host

        return "unknown"

    def _get_user_identity(self, request: Request) -> str:
        """
        Get the caller identity claimed by the bearer token.

        The signature is NOT verified here; this value is only used for log context.
        Authentication happens in cicd_api.auth.
        """
        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return "anonymous"

        try:
            claims = jwt.get_unverified_claims(auth_header[7:])
        except JWTError:
            return "bearer_token:unparseable"

        username = claims.get("username", "unknown")
        scm_context = claims.get("scmContext")
        return f"{username} ({scm_context})" if scm_context else username

