"""
Connection profile type definitions.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ConnectionProfile:
    """A saved Elasticsearch endpoint with its credentials."""
    id: str
    name: str
    url: str
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def has_password(self) -> bool:
        return bool(self.password)

    def snapshot(self) -> "ConnectionProfile":
        """Copy that shares no mutable state with this profile."""
        return replace(self, headers=dict(self.headers))

    def with_id(self, profile_id: str) -> "ConnectionProfile":
        return replace(self, id=profile_id, headers=dict(self.headers))

    def to_public_dict(self) -> Dict[str, Any]:
        """Serializable view without the password."""
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "username": self.username,
            "has_password": self.has_password,
            "headers": dict(self.headers),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConnectionProfile":
        """Create from user input; a missing id is left empty for the store to assign."""
        return cls(
            id=data.get("id") or "",
            name=data.get("name") or "",
            url=(data.get("url") or "").rstrip("/"),
            username=data.get("username") or None,
            password=data.get("password") or None,
            headers=dict(data.get("headers") or {}),
        )


@dataclass(frozen=True)
class EncryptedSecret:
    """Ciphertext and nonce, each base64-encoded."""
    ciphertext: str
    nonce: str

    def to_dict(self) -> Dict[str, str]:
        return {"ciphertext": self.ciphertext, "nonce": self.nonce}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EncryptedSecret":
        return cls(ciphertext=data["ciphertext"], nonce=data["nonce"])


@dataclass(frozen=True)
class PersistedSecureProfile:
    """
    On-disk form of a ConnectionProfile.

    The password is only ever present as an EncryptedSecret.
    """
    id: str
    name: str
    url: str
    username: Optional[str]
    encrypted_password: Optional[EncryptedSecret]
    headers: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "username": self.username,
            "encrypted_password": (
                self.encrypted_password.to_dict() if self.encrypted_password else None
            ),
            "headers": dict(self.headers),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PersistedSecureProfile":
        """
        Create from a stored record.

        Raises:
            KeyError: If a required key is missing
            TypeError: If the record or one of its values has the wrong type
        """
        for key in ("id", "name", "url"):
            if not isinstance(data[key], str):
                raise TypeError(f"'{key}' must be a string")

        username = data.get("username")
        if username is not None and not isinstance(username, str):
            raise TypeError("'username' must be a string")

        headers = data.get("headers") or {}
        if not isinstance(headers, dict):
            raise TypeError("'headers' must be an object")

        encrypted = data.get("encrypted_password")
        if encrypted is not None and not isinstance(encrypted, dict):
            raise TypeError("'encrypted_password' must be an object")

        return cls(
            id=data["id"],
            name=data["name"],
            url=data["url"],
            username=username,
            encrypted_password=EncryptedSecret.from_dict(encrypted) if encrypted else None,
            headers={str(k): str(v) for k, v in headers.items()},
        )
