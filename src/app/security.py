from __future__ import annotations

"""Staff authentication and hotel access helpers."""

from dataclasses import dataclass

from fastapi import HTTPException, Request, status

from src.app.settings import settings

ALL_HOTELS = "*"
STAFF_ROLES = {"staff", "admin", "super_admin"}
ADMIN_ROLES = {"admin", "super_admin"}


@dataclass(frozen=True)
class AuthContext:
    """Resolved staff identity for the current request."""
    api_key: str
    role: str
    hotel_id: str

    @property
    def is_super_admin(self) -> bool:
        return self.role == "super_admin" or self.hotel_id == ALL_HOTELS


async def require_api_key(request: Request) -> AuthContext:
    """Resolve the caller from the configured API key map."""
    api_key = _extract_api_key(request)
    entry = settings.api_key_map.get(api_key) if api_key else None
    if api_key is None or entry is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return AuthContext(api_key=api_key, role=entry["role"], hotel_id=entry["hotel_id"])


def require_roles(auth: AuthContext, allowed: set[str]) -> None:
    """Enforce role-based access control."""
    if auth.role not in allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )


def resolve_hotel_id(auth: AuthContext, requested: int | None) -> int:
    """Pick the target hotel, allowing other hotels only for super admins."""
    if requested is None:
        if auth.is_super_admin:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Hotel ID is required")
        return int(auth.hotel_id)
    ensure_hotel_access(auth, requested)
    return requested


def ensure_hotel_access(auth: AuthContext, hotel_id: int) -> None:
    """Reject access to another hotel's rows unless the caller is a super admin."""
    if not auth.is_super_admin and str(hotel_id) != auth.hotel_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")


def _extract_api_key(request: Request) -> str | None:
    """Extract API key from headers."""
    header_key = request.headers.get("x-api-key")
    if header_key:
        return header_key.strip()
    auth = request.headers.get("authorization")
    if not auth:
        return None
    parts = auth.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1].strip()
    return None
