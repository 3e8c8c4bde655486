import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request as UrlRequest, urlopen

from fastapi import Depends, Request

from config import Settings, get_settings
from errors import AuthProviderError, Unauthenticated

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "AuthUser":
        metadata = payload.get("user_metadata") or {}
        return cls(
            id=str(payload["id"]),
            email=payload.get("email"),
            name=metadata.get("full_name") or metadata.get("name"),
        )


def _error_message(payload: Any, default: str) -> str:
    if isinstance(payload, dict):
        for key in ("msg", "message", "error_description", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return default


class AuthProvider:
    """REST client for the hosted auth service."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    def get_user(self, token: str) -> AuthUser:
        try:
            payload = self._request("GET", "/auth/v1/user", bearer=token)
        except AuthProviderError as exc:
            logger.warning(f"auth_rejected: status={exc.status} reason={exc}")
            raise Unauthenticated(str(exc)) from exc
        if not isinstance(payload, dict) or not payload.get("id"):
            raise Unauthenticated("Unauthorized access")
        return AuthUser.from_payload(payload)

    def create_user(self, email: str, password: str, name: str) -> AuthUser:
        payload = self._request(
            "POST",
            "/auth/v1/admin/users",
            bearer=self.settings.service_key,
            body={
                "email": email,
                "password": password,
                "email_confirm": True,
                "user_metadata": {"full_name": name},
            },
        )
        if isinstance(payload, dict) and isinstance(payload.get("user"), dict):
            payload = payload["user"]
        if not isinstance(payload, dict) or not payload.get("id"):
            raise AuthProviderError("Unexpected auth provider response")
        return AuthUser.from_payload(payload)

    def _request(
        self,
        method: str,
        path: str,
        *,
        bearer: str,
        body: Optional[dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.settings.auth_url}{path}"
        data = json.dumps(body).encode("utf-8") if body is not None else None
        headers = {
            "Accept": "application/json",
            "apikey": self.settings.service_key,
            "Authorization": f"Bearer {bearer}",
        }
        if data is not None:
            headers["Content-Type"] = "application/json"
        req = UrlRequest(url, data=data, headers=headers, method=method)
        try:
            with urlopen(req, timeout=self.settings.auth_timeout_secs) as resp:
                raw = resp.read().decode("utf-8")
        except HTTPError as exc:
            try:
                error_payload = json.loads(exc.read().decode("utf-8") or "{}")
            except (json.JSONDecodeError, UnicodeDecodeError):
                error_payload = {}
            code = None
            if isinstance(error_payload, dict):
                code = error_payload.get("error_code")
            raise AuthProviderError(
                _error_message(error_payload, f"Auth provider returned {exc.code}"),
                status=exc.code,
                code=code,
            ) from exc
        except (URLError, TimeoutError) as exc:
            raise AuthProviderError("Failed to reach auth provider") from exc

        try:
            return json.loads(raw) if raw else None
        except json.JSONDecodeError as exc:
            raise AuthProviderError("Unexpected auth provider response") from exc


@lru_cache(maxsize=1)
def get_auth_provider() -> AuthProvider:
    return AuthProvider(get_settings())


def parse_bearer_token(request: Request) -> str:
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthenticated("Authorization token required")
    return token.strip()


def get_current_user(
    request: Request, provider: AuthProvider = Depends(get_auth_provider)
) -> AuthUser:
    token = parse_bearer_token(request)
    return provider.get_user(token)
