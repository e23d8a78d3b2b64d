"""Tests for option resolution and settings driven construction."""
import pytest

from vkontakte_auth.core import config as app_config
from vkontakte_auth.models.schemas import OAuth2ClientConfig, StrategyOptions
from vkontakte_auth.services.oauth import (
    OAuthConfigurationError,
    VKontakteStrategy,
    create_vkontakte_strategy,
)
from vkontakte_auth.services.oauth.providers import resolve_options

from conftest import STRATEGY_OPTIONS


def _verify(access_token, refresh_token, profile, done):
    done(None, profile)


class TestResolveOptions:
    def test_defaults(self):
        config = resolve_options({})
        assert config.authorization_url == "https://oauth.vk.com/authorize"
        assert config.token_url == "https://oauth.vk.com/access_token"
        assert config.profile_url == "https://api.vk.com/method/users.get"
        assert config.scope_separator == ","
        assert config.lang == "en"
        assert config.photo_size == 200
        assert config.api_version == "5.110"
        assert config.profile_fields == ()
        assert config.scope == ()

    def test_none_uses_defaults(self):
        assert resolve_options(None) == resolve_options({})

    def test_caller_values_win(self):
        config = resolve_options(
            {
                "authorization_url": "https://auth.example/authorize",
                "token_url": "https://auth.example/token",
                "scope_separator": " ",
                "lang": "ru",
                "photo_size": 100,
                "api_version": "5.131",
                "profile_fields": ["city"],
                "scope": "email",
            }
        )
        assert config.authorization_url == "https://auth.example/authorize"
        assert config.token_url == "https://auth.example/token"
        assert config.scope_separator == " "
        assert config.lang == "ru"
        assert config.photo_size == 100
        assert config.api_version == "5.131"
        assert config.profile_fields == ("city",)
        assert config.scope == ("email",)

    def test_request_is_always_passed_to_callback(self):
        config = resolve_options(StrategyOptions(pass_request_to_callback=False))
        assert config.pass_request_to_callback is True

    def test_numeric_client_id_is_accepted(self):
        assert resolve_options({"client_id": 123456}).client_id == "123456"

    def test_unknown_option_is_rejected(self):
        with pytest.raises(ValueError):
            resolve_options({"clientID": "123"})

    def test_resolved_config_is_immutable(self):
        config = resolve_options({})
        with pytest.raises(ValueError):
            config.lang = "ru"

    def test_client_config_drops_provider_specific_options(self):
        client_config = resolve_options({**STRATEGY_OPTIONS, "lang": "ru", "photo_size": 50}).client_config()
        assert isinstance(client_config, OAuth2ClientConfig)
        dumped = client_config.model_dump()
        assert "lang" not in dumped
        assert "photo_size" not in dumped
        assert client_config.scope_separator == ","
        assert client_config.client_id == "123456"


class TestStrategyConstruction:
    def test_requires_verify(self):
        with pytest.raises(TypeError):
            VKontakteStrategy(STRATEGY_OPTIONS, None)

    def test_missing_credentials_are_rejected_by_client(self):
        with pytest.raises(OAuthConfigurationError):
            VKontakteStrategy({"client_secret": "x"}, _verify)
        with pytest.raises(OAuthConfigurationError):
            VKontakteStrategy({"client_id": "1"}, _verify)

    def test_name_and_provider_specific_settings(self):
        strategy = VKontakteStrategy({**STRATEGY_OPTIONS, "lang": "de", "photo_size": 400}, _verify)
        assert strategy.name == "vkontakte"
        assert strategy.lang == "de"
        assert strategy.photo_size == 400


class TestFactory:
    def test_returns_none_without_credentials(self):
        settings = app_config.TestSettings(VK_CLIENT_ID=None, VK_CLIENT_SECRET=None)
        assert create_vkontakte_strategy(_verify, settings) is None

    def test_builds_strategy_from_settings(self):
        settings = app_config.TestSettings(
            VK_CLIENT_ID=42,
            VK_SCOPE=["email", "friends"],
            VK_PROFILE_FIELDS=["city"],
            VK_LANG="ru",
        )
        strategy = create_vkontakte_strategy(_verify, settings)
        assert strategy is not None
        assert strategy.config.client_id == "42"
        assert strategy.config.scope == ("email", "friends")
        assert strategy.config.profile_fields == ("city",)
        assert strategy.lang == "ru"
        # unset settings keep the strategy defaults
        assert strategy.config.api_version == "5.110"
        assert strategy.photo_size == 200


class TestSettingsValidation:
    def test_prod_requires_vk_credentials(self):
        with pytest.raises(ValueError, match="VK_CLIENT_ID"):
            app_config.ProdSettings(VK_CLIENT_ID=None, VK_CLIENT_SECRET="s", VK_CALLBACK_URL="https://a/cb")

    def test_prod_requires_https_callback(self):
        with pytest.raises(ValueError, match="https"):
            app_config.ProdSettings(VK_CLIENT_ID="1", VK_CLIENT_SECRET="s", VK_CALLBACK_URL="http://a/cb")

    def test_prod_accepts_complete_settings(self):
        settings = app_config.ProdSettings(VK_CLIENT_ID="1", VK_CLIENT_SECRET="s", VK_CALLBACK_URL="https://a/cb")
        assert settings.LOG_FORMAT == "json"
