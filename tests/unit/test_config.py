"""
Genome Database Health Checks - Configuration Unit Tests

Tests the Config class with:
- Environment variable loading
- AWS SSM Parameter Store integration (mocked)
- Type conversions (int, bool)
- Default value handling
- Error handling for missing configuration
"""

import os

import pytest
from unittest.mock import patch, MagicMock

from utils.config import Config, ConfigurationError


class ParameterNotFound(Exception):
    """Stands in for the boto3 client's ParameterNotFound error (matched by name)."""


class AccessDeniedException(Exception):
    pass


def ssm_client_returning(value):
    mock_ssm = MagicMock()
    mock_ssm.get_parameter.return_value = {'Parameter': {'Value': value}}
    return mock_ssm


def ssm_client_raising(error):
    mock_ssm = MagicMock()
    mock_ssm.get_parameter.side_effect = error
    return mock_ssm


# ============================================================================
# Test Class: Config - Local Mode (Environment Variables)
# ============================================================================

class TestConfigLocalMode:
    """
    Test Config class in local development mode.

    Mode: ENVIRONMENT='local'
    Source: os.getenv() from .env file or system environment
    """

    def test_config_defaults_to_local_environment(self):
        """
        Config should default to 'local' environment if ENVIRONMENT not set.

        Given: ENVIRONMENT not set in environment
        When: Config() is instantiated
        Then: environment should be 'local'
        """
        with patch.dict(os.environ, {}, clear=True):
            config = Config()
            assert config.environment == 'local'

    def test_get_returns_environment_variable_in_local_mode(self):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local', 'PRIMARY_DB_HOST': 'ensembldb.example.org'}):
            config = Config()
            assert config.get('PRIMARY_DB_HOST') == 'ensembldb.example.org'

    def test_get_returns_default_when_key_not_found(self):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local'}, clear=True):
            config = Config()
            assert config.get('MISSING_KEY', 'default_value') == 'default_value'

    def test_get_returns_none_when_key_not_found_and_no_default(self):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local'}, clear=True):
            config = Config()
            assert config.get('MISSING_KEY') is None


# ============================================================================
# Test Class: Config - Production Mode (AWS SSM)
# ============================================================================

class TestConfigProductionMode:
    """
    Test Config class in production mode with AWS SSM Parameter Store.

    Mode: ENVIRONMENT='production'
    Source: AWS SSM Parameter Store (mocked)
    """

    def test_config_recognizes_production_environment(self):
        with patch.dict(os.environ, {'ENVIRONMENT': 'production'}):
            config = Config()
            assert config.environment == 'production'

    @patch('boto3.client')
    def test_get_fetches_from_ssm_in_production_mode(self, mock_boto_client):
        """
        Config.get() should fetch from AWS SSM in production mode.

        Given: ENVIRONMENT='production'
        When: config.get('PRIMARY_DB_HOST') is called
        Then: Fetch from SSM at path /genome-healthchecks/PRIMARY_DB_HOST
        """
        mock_ssm = ssm_client_returning('mysql-prod.example.org')
        mock_boto_client.return_value = mock_ssm

        with patch.dict(os.environ, {'ENVIRONMENT': 'production'}, clear=True):
            config = Config()
            result = config.get('PRIMARY_DB_HOST')

            mock_boto_client.assert_called_once_with('ssm', region_name='eu-west-2')
            mock_ssm.get_parameter.assert_called_once_with(
                Name='/genome-healthchecks/PRIMARY_DB_HOST',
                WithDecryption=True
            )
            assert result == 'mysql-prod.example.org'

    @patch('boto3.client')
    def test_get_uses_custom_ssm_prefix_and_region(self, mock_boto_client):
        mock_ssm = ssm_client_returning('custom-host')
        mock_boto_client.return_value = mock_ssm

        with patch.dict(os.environ, {
            'ENVIRONMENT': 'production',
            'AWS_SSM_PREFIX': '/custom/prefix',
            'AWS_REGION': 'us-east-1',
        }):
            config = Config()
            result = config.get('PRIMARY_DB_HOST')

            mock_boto_client.assert_called_once_with('ssm', region_name='us-east-1')
            mock_ssm.get_parameter.assert_called_once_with(
                Name='/custom/prefix/PRIMARY_DB_HOST',
                WithDecryption=True
            )
            assert result == 'custom-host'

    @patch('boto3.client')
    def test_ssm_client_is_created_once(self, mock_boto_client):
        mock_boto_client.return_value = ssm_client_returning('x')

        with patch.dict(os.environ, {'ENVIRONMENT': 'production'}):
            config = Config()
            config.get('A')
            config.get('B')

            assert mock_boto_client.call_count == 1

    @patch('boto3.client')
    def test_get_returns_default_when_ssm_parameter_not_found(self, mock_boto_client):
        mock_boto_client.return_value = ssm_client_raising(ParameterNotFound('missing'))

        with patch.dict(os.environ, {'ENVIRONMENT': 'production'}):
            config = Config()
            assert config.get('LOG_LEVEL', 'INFO') == 'INFO'

    @patch('boto3.client')
    def test_get_raises_when_parameter_not_found_without_default(self, mock_boto_client):
        mock_boto_client.return_value = ssm_client_raising(ParameterNotFound('missing'))

        with patch.dict(os.environ, {'ENVIRONMENT': 'production'}):
            config = Config()
            with pytest.raises(ConfigurationError, match="not found in SSM"):
                config.get('PRIMARY_DB_PASSWORD')

    @patch('boto3.client')
    def test_get_falls_back_to_default_on_access_error(self, mock_boto_client):
        mock_boto_client.return_value = ssm_client_raising(AccessDeniedException('denied'))

        with patch.dict(os.environ, {'ENVIRONMENT': 'production'}):
            config = Config()
            assert config.get('PRIMARY_DB_PORT', '3306') == '3306'

    @patch('boto3.client')
    def test_get_raises_on_access_error_without_default(self, mock_boto_client):
        mock_boto_client.return_value = ssm_client_raising(AccessDeniedException('denied'))

        with patch.dict(os.environ, {'ENVIRONMENT': 'production'}):
            config = Config()
            with pytest.raises(ConfigurationError, match="AccessDeniedException"):
                config.get('PRIMARY_DB_PASSWORD')


# ============================================================================
# Test Class: Config - Type Conversions
# ============================================================================

class TestConfigTypeConversions:
    """Test get_int() and get_bool()."""

    def test_get_int_parses_value(self):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local', 'MAX_CHECK_WORKERS': '4'}):
            assert Config().get_int('MAX_CHECK_WORKERS', 1) == 4

    def test_get_int_returns_default_when_missing(self):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local'}, clear=True):
            assert Config().get_int('MAX_CHECK_WORKERS', 1) == 1

    def test_get_int_returns_default_on_invalid_value(self):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local', 'PRIMARY_DB_PORT': 'not-a-port'}):
            assert Config().get_int('PRIMARY_DB_PORT', 3306) == 3306

    @pytest.mark.parametrize("raw,expected", [
        ('true', True), ('True', True), ('1', True), ('yes', True), ('on', True),
        ('false', False), ('0', False), ('no', False), ('off', False),
    ])
    def test_get_bool_parses_value(self, raw, expected):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local', 'FLAG': raw}):
            assert Config().get_bool('FLAG', not expected) is expected

    def test_get_bool_returns_default_when_missing(self):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local'}, clear=True):
            assert Config().get_bool('FLAG', True) is True
