"""
Genome Database Health Checks - Configuration Management
Server credentials and run settings come from the environment (a .env file
via python-dotenv when run by hand) or, with ENVIRONMENT=production, from
AWS SSM Parameter Store so that read-only passwords stay out of job scripts.
"""

import logging
import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class ConfigurationError(Exception):
    """Raised when a required setting cannot be found."""
    pass


class Config:
    """
    Settings lookup.

    ENVIRONMENT=production reads <AWS_SSM_PREFIX>/<key> from SSM; anything
    else reads os.environ.
    """

    def __init__(self):
        self.environment = os.getenv('ENVIRONMENT', 'local')
        self._ssm_client = None

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        if self.environment == 'production':
            return self._get_from_ssm(key, default)
        return os.getenv(key, default)

    def _get_from_ssm(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Read one SSM parameter.

        A missing parameter or an unreachable SSM falls back to the default.
        With no default, ConfigurationError names the parameter path.
        """
        parameter_name = f"{os.getenv('AWS_SSM_PREFIX', '/genome-healthchecks')}/{key}"

        try:
            if self._ssm_client is None:
                import boto3
                self._ssm_client = boto3.client('ssm', region_name=os.getenv('AWS_REGION', 'eu-west-2'))
            response = self._ssm_client.get_parameter(Name=parameter_name, WithDecryption=True)
            return response['Parameter']['Value']

        except Exception as e:
            error_type = type(e).__name__
            if error_type == 'ParameterNotFound':
                if default is not None:
                    return default
                raise ConfigurationError(f"Required parameter '{key}' not found in SSM at path '{parameter_name}'")

            if default is not None:
                logging.warning(f"SSM lookup of '{parameter_name}' failed ({error_type}: {e}), using default")
                return default
            raise ConfigurationError(f"Failed to fetch parameter '{key}' from SSM: {error_type}: {e}")

    def get_int(self, key: str, default: int) -> int:
        value = self.get(key, str(default))
        try:
            return int(value)
        except (ValueError, TypeError):
            logging.warning(f"Setting '{key}' is not an integer ('{value}'), using {default}")
            return default

    def get_bool(self, key: str, default: bool) -> bool:
        value = self.get(key, str(default))
        if value is None:
            return default
        return value.lower() in ('true', '1', 'yes', 'on')


config = Config()


# Primary (current release) database server
PRIMARY_DB_HOST = config.get('PRIMARY_DB_HOST', 'localhost')
PRIMARY_DB_PORT = config.get_int('PRIMARY_DB_PORT', 3306)
PRIMARY_DB_USER = config.get('PRIMARY_DB_USER', 'ensro')
PRIMARY_DB_PASSWORD = config.get('PRIMARY_DB_PASSWORD', '')

# Secondary (reference / previous release) database server
SECONDARY_DB_HOST = config.get('SECONDARY_DB_HOST', '')
SECONDARY_DB_PORT = config.get_int('SECONDARY_DB_PORT', 3306)
SECONDARY_DB_USER = config.get('SECONDARY_DB_USER', 'ensro')
SECONDARY_DB_PASSWORD = config.get('SECONDARY_DB_PASSWORD', '')

DB_DRIVER = config.get('DB_DRIVER', 'mysql+pymysql')
LOG_LEVEL = config.get('LOG_LEVEL', 'INFO')
MAX_CHECK_WORKERS = config.get_int('MAX_CHECK_WORKERS', 1)

# Pool settings, per database engine
DB_POOL_SIZE = config.get_int('DB_POOL_SIZE', 2)
DB_POOL_MAX_OVERFLOW = config.get_int('DB_POOL_MAX_OVERFLOW', 4)
DB_POOL_RECYCLE = config.get_int('DB_POOL_RECYCLE', 3600)  # seconds
DB_POOL_PRE_PING = config.get_bool('DB_POOL_PRE_PING', True)
