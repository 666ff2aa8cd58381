"""Tests for application configuration."""

import pytest
from pydantic import ValidationError

from petfeeder.config import DEV_TOKEN_SECRET, Environment, Settings, get_settings


def _make_settings(**overrides) -> Settings:
    """Build a Settings instance with test defaults + overrides."""
    defaults = {
        "PETFEEDER_ENV": "test",
        "TOKEN_SECRET": None,
        "GOOGLE_CLIENT_ID": None,
        "GOOGLE_CLIENT_SECRET": None,
        "REDIRECT_URL": None,
        "CLIENT_URL": None,
    }
    defaults.update(overrides)
    return Settings(**defaults)


class TestDefaults:
    def test_policy_constants(self):
        s = _make_settings()

        assert s.session_token_ttl_s == 36000
        assert s.media_chunk_bytes == 524_288
        assert s.oauth_state == "standard_oauth"
        assert s.scope_list == [
            "openid",
            "profile",
            "email",
            "https://www.googleapis.com/auth/drive.readonly",
        ]

    def test_dev_secret_fallback(self):
        assert _make_settings().effective_token_secret == DEV_TOKEN_SECRET
        assert _make_settings(TOKEN_SECRET="real").effective_token_secret == "real"

    def test_client_origins_parsed(self):
        s = _make_settings(CLIENT_URL="http://localhost:3000/, https://feeder.example ,")

        assert s.client_origin_list == ["http://localhost:3000", "https://feeder.example"]

    def test_loaded_from_environment(self):
        settings = get_settings()

        assert settings.petfeeder_env == Environment.TEST
        assert settings.google_client_id == "test-client-id.apps.googleusercontent.com"


class TestValidation:
    @pytest.mark.parametrize("env", ["staging", "prod"])
    def test_secrets_required_outside_dev(self, env):
        with pytest.raises(ValidationError) as exc_info:
            _make_settings(PETFEEDER_ENV=env)

        message = str(exc_info.value)
        for name in ("TOKEN_SECRET", "GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET", "REDIRECT_URL"):
            assert name in message

    def test_prod_with_all_secrets(self):
        s = _make_settings(
            PETFEEDER_ENV="prod",
            TOKEN_SECRET="s",
            GOOGLE_CLIENT_ID="id",
            GOOGLE_CLIENT_SECRET="secret",
            REDIRECT_URL="https://feeder.example/auth/callback",
        )

        assert s.petfeeder_env == Environment.PROD

    @pytest.mark.parametrize(
        "field", ["SESSION_TOKEN_TTL_S", "MEDIA_CHUNK_BYTES", "PASSWORD_HASH_TIME_COST"]
    )
    def test_non_positive_rejected(self, field):
        with pytest.raises(ValidationError, match=field):
            _make_settings(**{field: 0})

    def test_unknown_env_rejected(self):
        with pytest.raises(ValidationError):
            _make_settings(PETFEEDER_ENV="qa")
