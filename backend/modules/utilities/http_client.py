"""HTTP helpers (``utilities.http``).

Requests go out through ``httpx.AsyncClient``. Targets are checked first:
only http(s), no localhost or private addresses, no internal service ports.
"""

import base64
import ipaddress
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import httpx
import structlog

from app.config import get_settings

logger = structlog.get_logger(__name__)

_FORBIDDEN_PORTS = (5432, 6379, 9000)


def validate_url_safety(url: str) -> None:
    """Reject URLs that point at the local host or a private network.

    Raises:
        ValueError: If the URL is unsafe
    """
    parsed = urlparse(url)

    if parsed.scheme.lower() not in ("http", "https"):
        raise ValueError(f"Unsupported scheme: {parsed.scheme}. Only HTTP and HTTPS allowed.")

    hostname = parsed.hostname
    if not hostname:
        raise ValueError("URL must have a valid hostname")

    if hostname.lower() in ("localhost", "127.0.0.1", "::1"):
        raise ValueError("Connections to localhost are not allowed")

    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        ip = None  # a domain name
    if ip is not None and (ip.is_private or ip.is_loopback or ip.is_reserved or ip.is_link_local):
        raise ValueError(f"Connections to private IP {hostname} are not allowed")

    if parsed.port in _FORBIDDEN_PORTS:
        raise ValueError(f"Connections to internal port {parsed.port} are not allowed")


def _apply_auth(headers: Dict[str, str], auth: Optional[Dict[str, Any]]) -> None:
    if not auth:
        return
    auth_type = auth.get("type", "")
    if auth_type == "bearer":
        headers["Authorization"] = f"Bearer {auth['token']}"
    elif auth_type == "basic":
        creds = base64.b64encode(f"{auth['username']}:{auth['password']}".encode()).decode()
        headers["Authorization"] = f"Basic {creds}"
    elif auth_type == "api_key":
        headers[auth.get("header", "X-API-Key")] = auth["key"]
    else:
        raise ValueError(f"Unsupported auth type: {auth_type}")


async def http_request(config: Dict[str, Any]) -> Dict[str, Any]:
    """Make an HTTP request.

    Config:
        url: Target URL (required)
        method: GET, POST, PUT, PATCH, DELETE (default: GET)
        headers: Dict of HTTP headers
        params: URL query parameters
        body: Request body (for POST/PUT/PATCH)
        bodyType: "json" | "form" | "text" (default: json)
        auth: { "type": "bearer|basic|api_key", "token|username|key": "..." }
        timeout: Seconds (default: HTTP_MODULE_TIMEOUT)

    Returns:
        { status, headers, data, url }. ``data`` is parsed JSON when the
        response is JSON, text otherwise.
    """
    url = config.get("url")
    if not url:
        raise ValueError("Missing required config: url")
    validate_url_safety(url)

    method = str(config.get("method", "GET")).upper()
    headers = dict(config.get("headers") or {})
    _apply_auth(headers, config.get("auth"))

    kwargs: Dict[str, Any] = {
        "method": method,
        "url": url,
        "headers": headers,
        "params": config.get("params") or {},
        "timeout": config.get("timeout") or get_settings().HTTP_MODULE_TIMEOUT,
        "follow_redirects": config.get("followRedirects", True),
    }

    body = config.get("body")
    if body is not None and method in ("POST", "PUT", "PATCH"):
        body_type = config.get("bodyType", "json")
        if body_type == "json":
            kwargs["json"] = body
        elif body_type == "form":
            kwargs["data"] = body
        else:
            kwargs["content"] = str(body)

    async with httpx.AsyncClient() as client:
        response = await client.request(**kwargs)

    try:
        data = response.json()
    except ValueError:
        data = response.text

    logger.debug("HTTP module request", method=method, url=url, status_code=response.status_code)

    if response.is_error and config.get("raiseForStatus", True):
        raise ValueError(f"HTTP {response.status_code} from {url}")

    return {
        "status": response.status_code,
        "headers": dict(response.headers),
        "data": data,
        "url": str(response.url),
    }


async def http_get(url: str, options: Optional[Dict[str, Any]] = None) -> Any:
    """GET a URL and return the response body."""
    response = await http_request({**(options or {}), "url": url, "method": "GET"})
    return response["data"]


async def http_post(url: str, data: Any, options: Optional[Dict[str, Any]] = None) -> Any:
    """POST a JSON body and return the response body."""
    response = await http_request({**(options or {}), "url": url, "method": "POST", "body": data})
    return response["data"]


MODULE = "http"

FUNCTIONS = {
    "httpRequest": {"func": http_request},
    "httpGet": {"func": http_get},
    "httpPost": {"func": http_post},
}
