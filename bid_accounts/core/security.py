import base64
import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, NamedTuple, Optional

import bcrypt

logger = logging.getLogger(__name__)

# bcrypt ignores (or rejects) anything past 72 bytes
BCRYPT_MAX_BYTES = 72
DEFAULT_HASH_ROUNDS = 10
TOKEN_BYTES = 32


def utcnow() -> datetime:
    """Timezone-aware current time in UTC"""
    return datetime.now(timezone.utc)


def mask_token(token: Optional[str]) -> str:
    """Shorten a secret token for log output"""
    if not token:
        return "<none>"
    return f"{token[:6]}..."


def _password_bytes(password: str) -> bytes:
    """
    Encode a password for bcrypt.

    Passwords longer than 72 bytes are reduced to the base64 form of their
    SHA-256 digest instead of being truncated, so two long passwords with a
    common prefix never verify against each other. Lone surrogates, which a
    JSON string can carry, are encoded as they are.
    """
    password_bytes = password.encode("utf-8", "surrogatepass")
    if len(password_bytes) <= BCRYPT_MAX_BYTES:
        return password_bytes
    return base64.b64encode(hashlib.sha256(password_bytes).digest())


class PasswordHasher:
    """Salted one-way password hashing with bcrypt"""

    def __init__(self, rounds: int = DEFAULT_HASH_ROUNDS):
        self.rounds = rounds
        self._dummy_hash: Optional[bytes] = None

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")

    def verify(self, password: str, password_hash: Optional[str]) -> bool:
        """Check a plaintext password against a stored hash; never raises on a bad hash"""
        if not password_hash:
            return False
        try:
            return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
        except ValueError:
            logger.warning("Stored password hash is malformed")
            return False

    def dummy_verify(self, password: str) -> bool:
        """Spend the same work as a real check when there is no account to check against"""
        if self._dummy_hash is None:
            self._dummy_hash = bcrypt.hashpw(secrets.token_bytes(16), bcrypt.gensalt(rounds=self.rounds))
        bcrypt.checkpw(_password_bytes(password), self._dummy_hash)
        return False


class IssuedToken(NamedTuple):
    token: str
    expires_at: datetime


class TokenGenerator:
    """Opaque email verification tokens with a fixed lifetime"""

    def __init__(
        self,
        ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.ttl = ttl
        self.clock = clock

    def generate(self, now: Optional[datetime] = None) -> IssuedToken:
        issued_at = now or self.clock()
        return IssuedToken(
            token=secrets.token_hex(TOKEN_BYTES),
            expires_at=issued_at + self.ttl,
        )
