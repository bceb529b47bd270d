"""
At-rest encryption of saved connection passwords.

Passwords are sealed with AES-256-GCM under a master key that is generated
once per install and kept in its own owner-only file. Every encryption uses a
fresh 96-bit random nonce.

Plaintext handling is best-effort: decrypted bytes are copied into a
`SecureBuffer` that is zeroed on every exit path, but CPython `bytes` and
`str` objects are immutable, so the copy returned by the AEAD library and the
decoded `str` handed to callers cannot be wiped. Treat the zeroing as a way to
shorten the exposure window, not as a guarantee.
"""

import base64
import binascii
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from mcp_types.connections import EncryptedSecret


logger = logging.getLogger(__name__)

KEY_SIZE = 32
NONCE_SIZE = 12


class CredentialError(Exception):
    """Base class for credential encryption failures."""


class InvalidKeyFile(CredentialError):
    """The key file exists but does not hold a 256-bit key."""


class EmptySecret(CredentialError):
    """Empty passwords are never encrypted."""


class DecodeError(CredentialError):
    """Stored ciphertext or nonce is not valid base64."""


class InvalidNonceLength(CredentialError):
    """Decoded nonce is not 12 bytes."""


class AuthenticationFailed(CredentialError):
    """The cipher rejected the ciphertext (tampering or wrong key)."""


class InvalidUtf8(CredentialError):
    """Recovered plaintext is not valid UTF-8."""


class SecureBuffer:
    """
    Mutable byte buffer that zeroes itself when released.

    Use as a context manager; the contents are wiped on exit, including
    when the block raises.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Union[bytes, bytearray] = b""):
        self._data = bytearray(data)

    def __enter__(self) -> "SecureBuffer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    def __del__(self):
        self.wipe()

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return "SecureBuffer([REDACTED])"

    __str__ = __repr__

    @property
    def is_wiped(self) -> bool:
        return not any(getattr(self, "_data", b""))

    def as_str(self) -> str:
        """
        Decode the buffer as UTF-8.

        Raises:
            InvalidUtf8: If the bytes are not valid UTF-8
        """
        try:
            return self._data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidUtf8(f"Invalid UTF-8 in decrypted data: {e.reason}") from None

    def wipe(self) -> None:
        data = getattr(self, "_data", None)
        if data is None:
            return
        for i in range(len(data)):
            data[i] = 0


def _b64decode(value: str, label: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError, TypeError):
        raise DecodeError(f"Failed to decode {label}") from None


def _restrict_permissions(path: Path) -> None:
    if os.name == "posix":
        os.chmod(path, 0o600)


def get_or_create_key(key_path: Union[str, Path]) -> bytes:
    """
    Load the master key, generating and persisting it on first use.

    Args:
        key_path: Location of the raw 32-byte key file

    Returns:
        The 256-bit key

    Raises:
        InvalidKeyFile: If an existing key file has the wrong length
        OSError: If the key file cannot be read or written
    """
    key_path = Path(key_path)

    if key_path.exists():
        key = key_path.read_bytes()
        if len(key) != KEY_SIZE:
            raise InvalidKeyFile(
                f"Invalid key file {key_path}: expected {KEY_SIZE} bytes, got {len(key)}"
            )
        return key

    key_path.parent.mkdir(parents=True, exist_ok=True)
    key = AESGCM.generate_key(bit_length=256)

    # Create with owner-only mode so the key is never readable by others,
    # then chmod in case the umask or an older file widened it.
    fd = os.open(key_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    with os.fdopen(fd, "wb") as handle:
        handle.write(key)
    _restrict_permissions(key_path)

    logger.info("Generated new master key at %s", key_path)
    return key


class CredentialCipher:
    """Authenticated encryption of single secrets under one master key."""

    def __init__(self, key: bytes):
        if len(key) != KEY_SIZE:
            raise InvalidKeyFile(f"Master key must be {KEY_SIZE} bytes")
        self._aead = AESGCM(bytes(key))

    @classmethod
    def from_key_file(cls, key_path: Union[str, Path]) -> "CredentialCipher":
        return cls(get_or_create_key(key_path))

    def encrypt(self, plaintext: str) -> EncryptedSecret:
        """
        Encrypt a secret with a fresh random nonce.

        Args:
            plaintext: Non-empty secret

        Returns:
            EncryptedSecret with base64 ciphertext and nonce

        Raises:
            EmptySecret: If plaintext is empty
        """
        if not plaintext:
            raise EmptySecret("Password cannot be empty")

        nonce = os.urandom(NONCE_SIZE)
        with SecureBuffer(plaintext.encode("utf-8")) as buffer:
            ciphertext = self._aead.encrypt(nonce, buffer._data, None)

        return EncryptedSecret(
            ciphertext=base64.b64encode(ciphertext).decode("ascii"),
            nonce=base64.b64encode(nonce).decode("ascii"),
        )

    @contextmanager
    def reveal(self, secret: EncryptedSecret) -> Iterator[SecureBuffer]:
        """
        Decrypt into a SecureBuffer that is wiped when the block exits.

        Raises:
            DecodeError: If ciphertext or nonce is not valid base64
            InvalidNonceLength: If the nonce is not 12 bytes
            AuthenticationFailed: If the ciphertext fails authentication
        """
        nonce = _b64decode(secret.nonce, "nonce")
        ciphertext = _b64decode(secret.ciphertext, "ciphertext")

        if len(nonce) != NONCE_SIZE:
            raise InvalidNonceLength(
                f"Invalid nonce length: expected {NONCE_SIZE} bytes, got {len(nonce)}"
            )

        try:
            plaintext = self._aead.decrypt(nonce, ciphertext, None)
        except InvalidTag:
            raise AuthenticationFailed("Decryption failed: authentication tag mismatch") from None

        buffer = SecureBuffer(plaintext)
        del plaintext
        try:
            yield buffer
        finally:
            buffer.wipe()

    def decrypt(self, ciphertext: str, nonce: str) -> str:
        """
        Decrypt a stored secret.

        Args:
            ciphertext: Base64 ciphertext (with GCM tag)
            nonce: Base64 12-byte nonce

        Returns:
            The plaintext secret

        Raises:
            DecodeError, InvalidNonceLength, AuthenticationFailed, InvalidUtf8
        """
        with self.reveal(EncryptedSecret(ciphertext=ciphertext, nonce=nonce)) as buffer:
            return buffer.as_str()

    def decrypt_secret(self, secret: EncryptedSecret) -> str:
        return self.decrypt(secret.ciphertext, secret.nonce)
