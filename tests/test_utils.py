"""
Tests for openstack_collector/utils.py.

Covers:
- load_config from environment variables and explicit values
- Missing required settings
- Domain and TLS verification defaults
- get_openstack_connection success and authentication failure
- Compute microversion pin
"""
import os
import sys
from unittest.mock import Mock, patch

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from openstack_collector.exceptions import AuthenticationError, ConfigurationError
from openstack_collector.models import CollectorConfig
from openstack_collector.utils import get_openstack_connection, load_config

# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def environ():
    return {
        "OS_AUTH_URL": "https://cloud.example.com:5000/v3",
        "OS_PROJECT_NAME": "admin",
        "OS_USERNAME": "admin",
        "OS_PASSWORD": "secret",
    }


@pytest.fixture
def config():
    return CollectorConfig(
        auth_url="https://cloud.example.com:5000/v3",
        project="admin",
        username="collector",
        password="secret",
        domain="Default",
    )


# =============================================================================
# load_config Tests
# =============================================================================

class TestLoadConfig:
    """Tests for load_config."""

    def test_from_environment(self, environ):
        config = load_config(environ=environ)

        assert config.auth_url == "https://cloud.example.com:5000/v3"
        assert config.project == "admin"
        assert config.username == "admin"
        assert config.password == "secret"
        assert config.domain == "default"
        assert config.verify is True
        assert config.parallel is False

    def test_explicit_values_win(self, environ):
        config = load_config(username="collector", project="ops", domain="corp", environ=environ)

        assert config.username == "collector"
        assert config.project == "ops"
        assert config.domain == "corp"
        assert config.password == "secret"

    def test_explicit_values_without_environment(self):
        config = load_config(
            auth_url="https://keystone:5000",
            project="admin",
            username="admin",
            password="pw",
            environ={},
        )
        assert config.auth_url == "https://keystone:5000"

    def test_missing_values_listed(self, environ):
        del environ["OS_PASSWORD"]
        del environ["OS_AUTH_URL"]

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(environ=environ)

        message = str(exc_info.value)
        assert "OS_AUTH_URL" in message
        assert "OS_PASSWORD" in message
        assert "OS_USERNAME" not in message

    def test_domain_from_environment(self, environ):
        environ["OS_DOMAIN_NAME"] = "legacy"
        assert load_config(environ=environ).domain == "legacy"

        environ["OS_USER_DOMAIN_NAME"] = "users"
        assert load_config(environ=environ).domain == "users"

    @pytest.mark.parametrize("value,verify", [("1", False), ("true", False), ("Yes", False), ("0", True), ("", True)])
    def test_insecure_environment(self, environ, value, verify):
        environ["OS_INSECURE"] = value
        assert load_config(environ=environ).verify is verify

    def test_insecure_flag(self, environ):
        assert load_config(insecure=True, environ=environ).verify is False

    def test_parallel_flag(self, environ):
        assert load_config(parallel=True, environ=environ).parallel is True


# =============================================================================
# get_openstack_connection Tests
# =============================================================================

class TestGetOpenStackConnection:
    """Tests for get_openstack_connection."""

    @patch("openstack_collector.utils.openstack.connect")
    def test_connects_and_authorizes(self, mock_connect, config):
        conn = Mock()
        mock_connect.return_value = conn

        assert get_openstack_connection(config) is conn

        conn.authorize.assert_called_once()
        kwargs = mock_connect.call_args.kwargs
        assert kwargs["auth_url"] == config.auth_url
        assert kwargs["project_name"] == "admin"
        assert kwargs["username"] == "collector"
        assert kwargs["password"] == "secret"
        assert kwargs["user_domain_name"] == "Default"
        assert kwargs["project_domain_name"] == "Default"
        assert kwargs["verify"] is True
        assert kwargs["compute_api_version"] == "2.46"

    @patch("openstack_collector.utils.openstack.connect")
    def test_insecure_connection(self, mock_connect, config):
        get_openstack_connection(config._replace(verify=False))
        assert mock_connect.call_args.kwargs["verify"] is False

    @patch("openstack_collector.utils.openstack.connect")
    def test_refused_credentials(self, mock_connect, config):
        mock_connect.return_value.authorize.side_effect = Exception("The request you have made requires authentication")

        with pytest.raises(AuthenticationError, match="Unable to authenticate OpenStack user"):
            get_openstack_connection(config)

        mock_connect.return_value.close.assert_called_once()

    @patch("openstack_collector.utils.openstack.connect")
    def test_unreachable_endpoint(self, mock_connect, config):
        mock_connect.side_effect = Exception("Unable to establish connection")

        with pytest.raises(AuthenticationError):
            get_openstack_connection(config)
