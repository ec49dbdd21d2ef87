"""
Unit tests for configuration loading, engine factory resolution and the HTTP layer.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from smart_session import get_configured_manager, load_engine_factory
from smart_session.auth import ConfigurationError, MemoryTokenStore, SessionLifecycleManager
from smart_session.models import SmartConfig
from smart_session.models.config import DEFAULT_SCOPES, DEFAULT_TOKEN_KEY
from smart_session.network import HTTPManager, HTTPManagerFactory
from smart_session.utils.logger import mask_token

from conftest import EngineFactory


def env_manager_with(values):
    env_manager = MagicMock()
    env_manager.get_config.side_effect = lambda key, default=None: values.get(key, default)
    return env_manager


class TestSmartConfig:
    """Tests for SmartConfig."""

    def test_defaults(self):
        config = SmartConfig(
            base_url="https://fhir.example.org/r4",
            client_id="demo-client",
            redirect_uri="https://app.example.org/callback",
        )

        assert config.scopes == DEFAULT_SCOPES
        assert config.token_key == DEFAULT_TOKEN_KEY
        assert config.discovery_url == "https://fhir.example.org/r4/.well-known/smart-configuration"
        assert config.revocation_endpoint is None

    def test_trailing_slash_is_stripped(self):
        config = SmartConfig(base_url="https://fhir.example.org/r4///", client_id="c", redirect_uri="r")

        assert config.base_url == "https://fhir.example.org/r4"
        assert config.discovery_url.startswith("https://fhir.example.org/r4/.well-known")

    def test_explicit_discovery_url_is_kept(self):
        config = SmartConfig(base_url="https://a", client_id="c", redirect_uri="r",
                             discovery_url="https://b/.well-known/smart-configuration")

        assert config.discovery_url == "https://b/.well-known/smart-configuration"

    def test_from_dict_ignores_unknown_and_empty_values(self):
        config = SmartConfig.from_dict({
            "base_url": "https://fhir.example.org",
            "client_id": "demo-client",
            "redirect_uri": "https://app/cb",
            "scopes": "",
            "server_port": 8765,
        })

        assert config.scopes == DEFAULT_SCOPES
        assert not hasattr(config, "server_port")

    def test_missing_fields(self):
        config = SmartConfig.from_dict({"client_id": "demo-client"})

        assert config.missing_fields() == ["base_url", "redirect_uri"]
        assert config.discovery_url is None

    def test_from_environment(self):
        env_manager = env_manager_with({
            "base_url": "https://fhir.example.org/",
            "client_id": "env-client",
            "redirect_uri": "https://app/cb",
            "post_logout_redirect": "https://app/bye",
        })

        config = SmartConfig.from_environment(env_manager)

        assert config.base_url == "https://fhir.example.org"
        assert config.client_id == "env-client"
        assert config.post_logout_redirect == "https://app/bye"


class TestMaskToken:
    """Tests for credential masking in log output."""

    @pytest.mark.parametrize("token,expected", [
        (None, "<none>"),
        ("", "<none>"),
        ("short-token", "<present>"),
        ("abcdefgh-middle-part-wxyz", "abcdefgh...wxyz"),
    ])
    def test_mask(self, token, expected):
        assert mask_token(token) == expected


class TestLoadEngineFactory:
    """Tests for resolving engine factories from dotted paths."""

    def test_resolves_callable(self):
        from collections import OrderedDict

        assert load_engine_factory("collections:OrderedDict") is OrderedDict

    @pytest.mark.parametrize("path", ["collections", ":OrderedDict", "collections:"])
    def test_malformed_path(self, path):
        with pytest.raises(ConfigurationError):
            load_engine_factory(path)

    def test_missing_module(self):
        with pytest.raises(ConfigurationError):
            load_engine_factory("smart_session_no_such_module:factory")

    def test_not_callable(self):
        with pytest.raises(ConfigurationError):
            load_engine_factory("smart_session:__version__")


class TestGetConfiguredManager:
    """Tests for building a manager from configuration."""

    def test_missing_configuration(self):
        with pytest.raises(ConfigurationError) as excinfo:
            get_configured_manager(EngineFactory(), config=SmartConfig.from_dict({}))

        assert "base_url" in str(excinfo.value)

    def test_missing_engine_factory(self, smart_config):
        with patch("smart_session.get_environment_manager", return_value=env_manager_with({})):
            with pytest.raises(ConfigurationError):
                get_configured_manager(config=smart_config)

    def test_engine_factory_from_configuration(self, smart_config):
        env_manager = env_manager_with({"engine_factory": "conftest:fake_engine"})

        with patch("smart_session.get_environment_manager", return_value=env_manager):
            manager = get_configured_manager(config=smart_config, token_store=MemoryTokenStore(),
                                             discovery=MagicMock(), revocation=MagicMock())

        try:
            assert isinstance(manager, SessionLifecycleManager)
            assert manager.config is smart_config
        finally:
            manager.close()

    def test_default_token_store_uses_profile(self, smart_config, tmp_path):
        env_manager = env_manager_with({"profile_path": str(tmp_path)})

        with patch("smart_session.get_environment_manager", return_value=env_manager):
            manager = get_configured_manager(EngineFactory(), config=smart_config,
                                             discovery=MagicMock(), revocation=MagicMock())

        try:
            assert manager.token_store.namespace == smart_config.client_id
            assert manager.token_store.vfs.base_path == str(tmp_path)
        finally:
            manager.close()


class TestHTTPManager:
    """Tests for the shared HTTP manager."""

    def test_factory_defaults(self):
        manager = HTTPManagerFactory.create_for_client("demo-client", timeout=5)

        assert manager.config.timeout == 5
        assert manager.config.client_label == "demo-client"
        assert manager.config.default_headers["Accept"] == "application/json"

    def test_headers_are_merged(self):
        manager = HTTPManagerFactory.create_for_client("demo-client")
        response = MagicMock(status_code=200, headers={}, content=b"", elapsed=None)

        with patch.object(manager._session, "request", return_value=response) as request:
            manager.post("https://idp/revoke", operation="revocation", data={"token": "t"},
                         headers={"Content-Type": "application/x-www-form-urlencoded"})

        method, url = request.call_args[0]
        kwargs = request.call_args[1]
        assert (method, url) == ("POST", "https://idp/revoke")
        assert kwargs["data"] == {"token": "t"}
        assert kwargs["headers"]["Accept"] == "application/json"
        assert kwargs["headers"]["Content-Type"] == "application/x-www-form-urlencoded"
        assert kwargs["headers"]["User-Agent"] == "smart-session/1.0"

    def test_http_errors_are_raised(self):
        manager = HTTPManager()
        response = MagicMock(status_code=503, headers={}, content=b"", elapsed=None)
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("503", response=response)

        with patch.object(manager._session, "request", return_value=response):
            with pytest.raises(requests.exceptions.HTTPError):
                manager.get("https://fhir.example.org/.well-known/smart-configuration", operation="discovery")
