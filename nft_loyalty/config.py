"""
Configuration management for the loyalty service.
"""
import os
from dotenv import load_dotenv

load_dotenv()


class BaseConfig:
    """Base configuration."""
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Atomic update retry policy (storage conflicts / outages)
    LOYALTY_ACTION_MAX_RETRIES = int(os.getenv('LOYALTY_ACTION_MAX_RETRIES', '3'))
    LOYALTY_ACTION_RETRY_BACKOFF = float(os.getenv('LOYALTY_ACTION_RETRY_BACKOFF', '0.05'))

    # Content-addressed blob gateway used to turn image CIDs into URLs
    BLOB_GATEWAY_URL = os.getenv('BLOB_GATEWAY_URL', 'https://gateway.pinata.cloud')

    # Token metadata
    METADATA_BASE_URL = os.getenv('METADATA_BASE_URL', 'http://localhost:5000/api/metadata')
    TOKEN_EXTERNAL_URL_BASE = os.getenv('TOKEN_EXTERNAL_URL_BASE', 'http://localhost:5173/nft')
    TOKEN_NAME_PREFIX = os.getenv('TOKEN_NAME_PREFIX', 'Loyalty NFT')

    # Active perk catalog cache (seconds)
    PERK_CACHE_TIMEOUT = int(os.getenv('PERK_CACHE_TIMEOUT', '60'))

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv('CORS_ORIGINS', 'http://localhost:5173,http://127.0.0.1:5173').split(',')
        if origin.strip()
    ]


class DevelopmentConfig(BaseConfig):
    """Development configuration."""
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.getenv(
        'DATABASE_URL',
        'sqlite:///nft_loyalty_dev.db'  # SQLite fallback for local dev
    )


class ProductionConfig(BaseConfig):
    """Production configuration."""
    DEBUG = False

    _db_url = os.getenv('DATABASE_URL', '')
    if _db_url.startswith('postgres://'):
        # SQLAlchemy requires postgresql:// not postgres://
        _db_url = _db_url.replace('postgres://', 'postgresql://', 1)

    SQLALCHEMY_DATABASE_URI = _db_url

    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 5,
        'pool_recycle': 300,
        'pool_pre_ping': True,  # Verify connections before using
    }

    _secret_key = os.getenv('SECRET_KEY', '')

    @classmethod
    def validate_secret_key(cls) -> str:
        """
        Validate SECRET_KEY in production environment.

        Raises:
            RuntimeError: If SECRET_KEY is missing, empty, or too short
        """
        if not cls._secret_key:
            raise RuntimeError(
                "CRITICAL: SECRET_KEY environment variable is not set!\n"
                "Generate one with: python -c \"import secrets; print(secrets.token_hex(32))\""
            )

        if len(cls._secret_key) < 32:
            raise RuntimeError(
                "CRITICAL: SECRET_KEY is too short (minimum 32 characters required)!\n"
                "Generate a secure key with: python -c \"import secrets; print(secrets.token_hex(32))\""
            )

        return cls._secret_key

    SECRET_KEY = _secret_key  # Validated at app startup


class TestingConfig(BaseConfig):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    CACHE_TYPE = 'NullCache'
    LOYALTY_ACTION_RETRY_BACKOFF = 0


config_map = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig
}


def get_config(config_name: str = 'development'):
    """Get configuration class by name."""
    return config_map.get(config_name, DevelopmentConfig)


def validate_config(config_name: str = 'development') -> None:
    """
    Validate configuration before app startup.

    Raises:
        RuntimeError: If validation fails in production
    """
    if config_name == 'production':
        ProductionConfig.validate_secret_key()
