# helperbars/core/templating/helpers/network.py
"""
Outbound HTTP helpers: plain requests and the AuthX bearer-token fetch.

The helpers close over a ``requests.Session`` and, for bearer tokens, the
environment's token cache. No timeout is applied here.
"""
import json
import time
from typing import Any, Callable, Dict, Mapping, Optional

import jwt
import requests
import structlog

from helperbars.core.cache import TTLCache
from helperbars.exceptions import TransportError, TypeMismatchError

log = structlog.get_logger(__name__)

TOKEN_EXPIRY_MARGIN_SECONDS = 60
AUTHX_QUERY = 'query {{ authorization(id: {id}) {{ token(format:BEARER) }} }}'


def _header_dict(headers: Optional[Mapping[Any, Any]]) -> Dict[str, str]:
    if headers is None:
        return {}
    if not isinstance(headers, Mapping):
        raise TypeMismatchError(f"headers must be a mapping, got {type(headers).__name__}")
    result = {}
    for key, value in headers.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise TypeMismatchError("header names and values must be strings")
        result[key] = value
    return result


def _token_ttl(bearer_token: str) -> float:
    """Seconds until the token's exp claim, less a one-minute margin."""
    parts = bearer_token.split(" ", 1)
    if len(parts) != 2:
        raise TransportError("authx returned a malformed bearer token")
    try:
        claims = jwt.decode(parts[1], options={"verify_signature": False})
    except jwt.PyJWTError as e:
        raise TransportError(f"authx returned an unreadable token: {e}") from e
    expires_at = int(claims.get("exp", 0))
    return expires_at - time.time() - TOKEN_EXPIRY_MARGIN_SECONDS


def make_network_helpers(session: requests.Session, token_cache: TTLCache) -> Dict[str, Callable[..., Any]]:
    """Build the network helpers bound to ``session`` and ``token_cache``."""

    def send(method: str, url: str, headers: Optional[Mapping[Any, Any]], data: Optional[str]) -> requests.Response:
        log.debug("http_request_sending", method=method, url=url, has_body=data is not None)
        try:
            response = session.request(method, url, headers=_header_dict(headers), data=data)
        except requests.RequestException as e:
            log.warning("http_request_failed", method=method, url=url, error=str(e))
            raise TransportError(f"{method} {url}: {e}") from e
        log.debug("http_response_received", method=method, url=url, status=response.status_code)
        return response

    def http(method: str, url: str, headers: Optional[Mapping[Any, Any]] = None) -> requests.Response:
        return send(method, url, headers, None)

    def http_data(method: str, url: str, headers: Optional[Mapping[Any, Any]], data: str) -> requests.Response:
        return send(method, url, headers, data)

    def get_authx_bearer_token(authx_url: str, authx_token: str, authorization_id: str) -> str:
        cache_key = "::".join([authx_url, authx_token, authorization_id])
        cached, found = token_cache.get(cache_key)
        if found and isinstance(cached, str):
            log.debug("authx_token_cache_hit", url=authx_url, authorization_id=authorization_id)
            return cached

        body = json.dumps({"query": AUTHX_QUERY.format(id=json.dumps(authorization_id))})
        response = send("POST", authx_url, {"Authorization": authx_token, "Content-Type": "application/json"}, body)
        try:
            document = response.json()
        except ValueError as e:
            raise TransportError(f"authx returned invalid JSON: {e}") from e
        if not isinstance(document, dict):
            raise TransportError("authx returned an unexpected response")
        errors = document.get("errors") or []
        if errors:
            raise TransportError(f"authx error: {errors[0].get('message', '')}")
        try:
            bearer_token = document["data"]["authorization"]["token"]
        except (KeyError, TypeError) as e:
            raise TransportError("authx response has no token") from e
        if not isinstance(bearer_token, str):
            raise TransportError("authx response has no token")

        ttl = _token_ttl(bearer_token)
        if ttl > 0:
            token_cache.set_ex(cache_key, bearer_token, ttl)
        else:
            log.info("authx_token_not_cached", authorization_id=authorization_id, ttl_seconds=ttl)
        return bearer_token

    return {
        "http": http,
        "http_data": http_data,
        "getAuthXBearerToken": get_authx_bearer_token,
    }
