"""Redaction, hashing, and log guard utilities.

Never-log policy:
- Session tokens and provider access tokens
- Authorization codes and identity tokens
- Plaintext passwords and credential hashes
- Provider client secrets

Allowed (with suffix):
- _chars, _length: length of text
- _sha256, _hash: hash of text (correlating the same token across requests)
"""

import hashlib
import os

FORBIDDEN_KEYS = frozenset(
    {
        "token",
        "access_token",
        "session_token",
        "id_token",
        "code",
        "bearer",
        "secret",
        "client_secret",
        "password",
        "credential",
        "credential_hash",
    }
)

REDACTED_SUFFIXES = ("_sha256", "_hash", "_length", "_chars")


def hash_text(value: str) -> str:
    """SHA-256 hex digest of a string, stable across calls."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def _has_redacted_suffix(key: str) -> bool:
    return any(key.endswith(suffix) for suffix in REDACTED_SUFFIXES)


def safe_kv(*, _env: str | None = None, **kwargs) -> dict:
    """Validate that no forbidden keys are present unless already redacted.

    Raises ValueError in local/test environments if a forbidden key is used
    without a redacted suffix. In staging/prod, logs a warning instead.

    Usage:
        logger.info("media_relay_opened", **safe_kv(
            object_id=object_id,
            access_token_sha256=hash_text(access_token),   # OK: _sha256 suffix
            # access_token=access_token,                   # BLOCKED
        ))

    Args:
        _env: Override for PETFEEDER_ENV (test-only). If None, reads from env.
        **kwargs: Keyword arguments to validate and return.

    Returns:
        The same kwargs dict, after validation.

    Raises:
        ValueError: In local/test, if a forbidden key is used without redacted suffix.
    """
    violations = [
        key for key in kwargs if key in FORBIDDEN_KEYS and not _has_redacted_suffix(key)
    ]

    if violations:
        msg = f"Forbidden log keys without redacted suffix: {violations}"
        env = _env or os.environ.get("PETFEEDER_ENV", "local")
        if env in ("local", "test"):
            raise ValueError(msg)

        import structlog

        structlog.get_logger("petfeeder.services.redact").warning(
            "safe_kv_violation", forbidden_keys=violations
        )
        for key in violations:
            kwargs[key] = "***"

    return kwargs
