"""
UpCloud API - Request Executor

This module provides the client class that issues single HTTP requests against
the UpCloud API root with basic authentication.
"""

import base64
import json
import logging
import ssl
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

import certifi
import httpx

from . import codec
from .exceptions import (
    ApplicationError,
    ParseError,
    RequestTimeoutError,
    TransportError,
    ValidationError,
)
from .models import UpCloudConfig

logger = logging.getLogger("upcloud-api")

SUPPORTED_METHODS = ("GET", "POST", "PUT", "DELETE")


class RequestResponseLogger:
    """Framework for logging API requests and responses with sensitive data protection."""

    def __init__(self, logger: logging.Logger):
        """Initialize request/response logger.

        Args:
            logger: Logger instance to use for logging
        """
        self.logger = logger

    def log_request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict] = None,
        body: Optional[bytes] = None,
        operation: str = "unknown"
    ):
        """Log API request details with sensitive data sanitization.

        Args:
            method: HTTP method
            url: Request URL
            headers: Request headers
            body: Encoded request payload
            operation: Operation name for context
        """
        # Sanitize sensitive headers
        safe_headers = {}
        if headers:
            for key, value in headers.items():
                if key.lower() == "authorization":
                    safe_headers[key] = "[REDACTED]"
                else:
                    safe_headers[key] = value

        log_data = {
            "operation": operation,
            "request": {
                "method": method,
                "url": url,
                "headers": safe_headers,
                "has_data": bool(body)
            }
        }

        self.logger.info(f"API Request: {json.dumps(log_data)}")

    def log_response(
        self,
        status_code: int,
        response_size: Optional[int] = None,
        duration_ms: Optional[float] = None,
        operation: str = "unknown",
        error: Optional[Exception] = None
    ):
        """Log API response details with performance metrics.

        Args:
            status_code: HTTP status code, 0 when no response arrived
            response_size: Size of response in bytes
            duration_ms: Request duration in milliseconds
            operation: Operation name for context
            error: Exception if request failed
        """
        log_data = {
            "operation": operation,
            "response": {
                "status_code": status_code,
                "response_size": response_size,
                "duration_ms": duration_ms,
                "success": 200 <= status_code < 300,
                "has_error": bool(error)
            }
        }

        if error:
            log_data["error"] = str(error)

        level = logging.INFO if log_data["response"]["success"] else logging.WARNING
        self.logger.log(level, f"API Response: {json.dumps(log_data)}")


# Initialize request/response logger
request_logger = RequestResponseLogger(logger)


@dataclass(frozen=True)
class ApiResponse:
    """Raw result of one API call."""

    status_code: int
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Decode the body; an empty body decodes to None."""
        return codec.decode(self.body)

    def unwrap(self, *keys: str) -> Any:
        """Decode the body and walk the given wrapper keys."""
        return codec.unwrap(self.json(), *keys)

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


def application_error(response: ApiResponse, method: str, path: str) -> ApplicationError:
    """Build an ApplicationError from a non-2xx response.

    UpCloud reports failures as {"error": {"error_code": ..., "error_message": ...}};
    bodies that are not in that shape are kept verbatim in response_text.
    """
    error_code = None
    error_message = None
    try:
        data = response.json()
    except ParseError:
        data = None
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        error_code = data["error"].get("error_code")
        error_message = data["error"].get("error_message")

    message = f"API error {response.status_code} for {method} {path}"
    if error_message:
        message = f"{message}: {error_message}"

    return ApplicationError(
        message,
        status_code=response.status_code,
        error_code=error_code,
        response_text=response.text,
        context={"method": method, "path": path},
    )


class UpCloudClient:
    """Client for issuing requests to the UpCloud API."""

    def _create_ssl_context(self, verify_ssl: bool) -> ssl.SSLContext:
        """
        Create SSL context with security hardening.

        Args:
            verify_ssl: Whether to verify SSL certificates

        Returns:
            Configured SSL context
        """
        if not verify_ssl:
            logger.warning(
                "SSL CERTIFICATE VERIFICATION IS DISABLED!\n"
                "Connection is vulnerable to Man-in-the-Middle (MITM) attacks.\n"
                "Only use this against a local test endpoint."
            )
            context = ssl.create_default_context()
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
            return context

        context = ssl.create_default_context(cafile=certifi.where())
        context.check_hostname = True
        context.verify_mode = ssl.CERT_REQUIRED

        # Enforce TLS 1.2+
        context.minimum_version = ssl.TLSVersion.TLSv1_2

        logger.debug("SSL verification enabled with TLS 1.2+ enforcement")
        return context

    def __init__(
        self,
        config: UpCloudConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize UpCloud API client.

        Args:
            config: Configuration for the UpCloud connection
            transport: Optional httpx transport, e.g. httpx.MockTransport in tests
        """
        self.config = config
        self.base_url = config.base_url
        self.verify_ssl = config.verify_ssl

        ssl_context = self._create_ssl_context(self.verify_ssl)

        self.client = httpx.AsyncClient(
            verify=ssl_context,
            timeout=httpx.Timeout(config.timeout, pool=5.0),
            transport=transport,
        )

        # Set up Basic Auth
        auth_str = f"{config.username}:{config.password}"
        self.auth_header = base64.b64encode(auth_str.encode()).decode()

        logger.info(
            f"Initialized UpCloud client for {self.base_url} "
            f"(SSL verification: {'enabled' if self.verify_ssl else 'DISABLED'})"
        )

    async def close(self):
        """Close the httpx client."""
        await self.client.aclose()

    async def __aenter__(self) -> "UpCloudClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _headers(self, method: str) -> Dict[str, str]:
        headers = {
            "Authorization": f"Basic {self.auth_header}",
            "Accept": "application/json",
            "User-Agent": "upcloud-api-python/1.0",
        }
        if method != "GET":
            headers["Content-Type"] = "application/json"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        body: Optional[bytes] = None,
        operation: str = "api_request",
    ) -> ApiResponse:
        """Issue exactly one request and return the raw response.

        Any HTTP status is returned as an ApiResponse; only failures where no
        response arrived are raised.

        Args:
            method: HTTP method (GET, POST, PUT or DELETE)
            path: Resource path below the API version, e.g. "server/<uuid>/stop"
            body: Already encoded JSON body for POST/PUT
            operation: Name of operation for logging context

        Returns:
            ApiResponse with status code and body bytes

        Raises:
            ValidationError: For an unsupported method or empty path
            RequestTimeoutError: If the transport timed out
            TransportError: For any other connection level failure
        """
        if not method or not path:
            raise ValidationError("Method and path are required",
                                  context={"method": method, "path": path})

        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise ValidationError(f"Unsupported HTTP method: {method}",
                                  context={"method": method})

        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = self._headers(method)

        request_logger.log_request(method, url, headers, body, operation)
        start_time = datetime.utcnow()

        try:
            if method == "GET":
                response = await self.client.get(url, headers=headers)
            elif method == "POST":
                response = await self.client.post(url, headers=headers, content=body or b"")
            elif method == "PUT":
                response = await self.client.put(url, headers=headers, content=body or b"")
            else:
                response = await self.client.delete(url, headers=headers)

        except httpx.TimeoutException as e:
            duration_ms = (datetime.utcnow() - start_time).total_seconds() * 1000
            request_logger.log_response(0, 0, duration_ms, operation, e)
            raise RequestTimeoutError(f"Request timed out after {self.config.timeout}s",
                                      context={"timeout": self.config.timeout, "path": path}) from e

        except httpx.RequestError as e:
            duration_ms = (datetime.utcnow() - start_time).total_seconds() * 1000
            request_logger.log_response(0, 0, duration_ms, operation, e)
            raise TransportError(f"Cannot reach UpCloud API at {self.base_url}: {e!s}",
                                 context={"path": path, "error": str(e)}) from e

        duration_ms = (datetime.utcnow() - start_time).total_seconds() * 1000
        content = response.content or b""
        request_logger.log_response(response.status_code, len(content), duration_ms, operation)

        return ApiResponse(status_code=response.status_code, body=content)

    async def request_json(
        self,
        method: str,
        path: str,
        data: Any = None,
        operation: str = "api_request",
    ) -> ApiResponse:
        """Encode data, issue the request and reject non-2xx answers.

        Raises:
            ApplicationError: If the provider answered with a non-2xx status
        """
        body = codec.encode(data) if data is not None else None
        response = await self.request(method, path, body=body, operation=operation)
        if not response.ok:
            raise application_error(response, method.upper(), path)
        return response
