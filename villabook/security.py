from dataclasses import dataclass
from typing import Optional

from itsdangerous import URLSafeSerializer, BadSignature
from fastapi import Request, HTTPException

from .config import Settings

GUEST = "guest"
HOST = "host"
ROLES = (GUEST, HOST)


@dataclass(frozen=True)
class Identity:
    user_id: str
    role: str
    email: Optional[str] = None
    name: Optional[str] = None

    @property
    def is_host(self) -> bool:
        return self.role == HOST


def _serializer(settings: Settings) -> URLSafeSerializer:
    return URLSafeSerializer(settings.SECRET_KEY, salt="villabook-identity")


def issue_identity_token(settings: Settings, user_id: str, role: str = GUEST, email: str | None = None, name: str | None = None) -> str:
    """Used by the identity provider integration (and tests) to hand an identity to the API."""
    if role not in ROLES:
        raise ValueError(f"Unknown role {role!r}")
    return _serializer(settings).dumps({"uid": str(user_id), "role": role, "email": email, "name": name})


def _token_from_request(request: Request, settings: Settings) -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip() or None
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_identity(request: Request) -> Optional[Identity]:
    settings: Settings = request.app.state.settings
    token = _token_from_request(request, settings)
    if not token:
        return None
    try:
        data = _serializer(settings).loads(token)
        if data.get("role") not in ROLES or not data.get("uid"):
            return None
        return Identity(user_id=str(data["uid"]), role=data["role"], email=data.get("email"), name=data.get("name"))
    except (BadSignature, AttributeError, TypeError):
        return None


def require_guest(request: Request) -> Identity:
    """
    Dependency for guest-facing routes. Any authenticated identity may book;
    hosts booking for themselves are treated as guests.
    """
    identity = get_identity(request)
    if identity is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return identity


def require_host(request: Request) -> Identity:
    identity = require_guest(request)
    if not identity.is_host:
        raise HTTPException(status_code=403, detail="Forbidden")
    return identity
