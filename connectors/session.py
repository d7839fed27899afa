"""
Request-side capabilities the connector depends on.

The connector never touches a web framework directly.  It receives a
``RequestContext`` carrying the query string, headers, TLS flag and a
``SessionStore`` (anything with get / set / delete).  ``MappingSessionStore``
adapts a plain mutable mapping (Starlette's ``request.session`` is one).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, MutableMapping, Optional, Protocol, runtime_checkable

SESSION_STATE_KEY = "oauth_state"
SESSION_VERIFIER_KEY = "code_verifier"


@runtime_checkable
class SessionStore(Protocol):
    """Key/value store scoped to one user's browser session."""

    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class MappingSessionStore:
    """``SessionStore`` backed by a mutable mapping."""

    def __init__(self, data: Optional[MutableMapping[str, Any]] = None) -> None:
        self._data: MutableMapping[str, Any] = data if data is not None else {}

    def get(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


@dataclass
class RequestContext:
    """Framework-neutral view of an incoming request."""

    session: SessionStore = field(default_factory=MappingSessionStore)
    query: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    secure: bool = False

    @property
    def host(self) -> str:
        return self.header("host") or "localhost"

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup (works for plain dicts too)."""
        value = self.headers.get(name)
        if value is not None:
            return value
        lowered = name.lower()
        for key, val in self.headers.items():
            if key.lower() == lowered:
                return val
        return None

    @property
    def is_https(self) -> bool:
        forwarded = (self.header("x-forwarded-proto") or "").split(",")[0].strip()
        return self.secure or forwarded == "https"
