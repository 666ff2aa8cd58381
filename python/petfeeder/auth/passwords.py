"""Credential hashing for direct-registration accounts (argon2id)."""

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError


class CredentialHasher:
    """Slow, salted one-way hash with constant-time verification.

    argon2-cffi generates a fresh salt per hash and encodes the parameters
    into the hash string, so work factor changes only affect new hashes.
    """

    def __init__(self, time_cost: int = 3, memory_cost_kib: int = 65536, parallelism: int = 4):
        self._hasher = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost_kib,
            parallelism=parallelism,
        )

    def hash(self, plaintext: str) -> str:
        return self._hasher.hash(plaintext)

    def verify(self, stored_hash: str, plaintext: str) -> bool:
        """Return True when plaintext matches stored_hash; never raises on mismatch."""
        try:
            return self._hasher.verify(stored_hash, plaintext)
        except (VerificationError, InvalidHashError):
            return False
