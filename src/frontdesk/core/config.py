"""
Centralized configuration management for the Front Desk intake service
"""

import os
import re
import string
from typing import Optional, Dict, Any
from dataclasses import dataclass, field
from functools import lru_cache
import logging

logger = logging.getLogger(__name__)


@dataclass
class PrimaryRegistryConfig:
    """Primary (authoritative) registry settings"""
    uri: str = field(default_factory=lambda: os.getenv("PRIMARY_MONGODB_URI", "mongodb://localhost:27017"))
    name: str = field(default_factory=lambda: os.getenv("PRIMARY_DB", "frontdesk_primary"))
    max_pool_size: int = field(default_factory=lambda: int(os.getenv("PRIMARY_POOL_SIZE", "50")))
    min_pool_size: int = field(default_factory=lambda: int(os.getenv("PRIMARY_MIN_POOL_SIZE", "5")))
    server_selection_timeout_ms: int = field(default_factory=lambda: int(os.getenv("PRIMARY_SERVER_SELECTION_TIMEOUT_MS", "5000")))

    # Collection names
    patients_collection: str = "patients"
    doctors_collection: str = "doctors"
    oncall_collection: str = "oncall"
    intents_collection: str = "registration_intents"


@dataclass
class MirrorRegistryConfig:
    """Secondary (mirror) registry settings"""
    uri: str = field(default_factory=lambda: os.getenv("MIRROR_MONGODB_URI", "mongodb://localhost:27018"))
    name: str = field(default_factory=lambda: os.getenv("MIRROR_DB", "frontdesk_mirror"))
    max_pool_size: int = field(default_factory=lambda: int(os.getenv("MIRROR_POOL_SIZE", "20")))
    min_pool_size: int = field(default_factory=lambda: int(os.getenv("MIRROR_MIN_POOL_SIZE", "2")))
    server_selection_timeout_ms: int = field(default_factory=lambda: int(os.getenv("MIRROR_SERVER_SELECTION_TIMEOUT_MS", "5000")))

    patients_collection: str = "patients"
    hospital_name: str = field(default_factory=lambda: os.getenv("HOSPITAL_NAME", "MEDFORD"))


@dataclass
class RedisConfig:
    """Redis configuration settings"""
    enabled: bool = field(default_factory=lambda: os.getenv("REDIS_ENABLED", "true").lower() == "true")
    host: str = field(default_factory=lambda: os.getenv("REDIS_HOST", "localhost"))
    port: int = field(default_factory=lambda: int(os.getenv("REDIS_PORT", "6379")))
    password: Optional[str] = field(default_factory=lambda: os.getenv("REDIS_PASSWORD"))
    db: int = field(default_factory=lambda: int(os.getenv("REDIS_DB", "0")))
    max_connections: int = field(default_factory=lambda: int(os.getenv("REDIS_POOL_SIZE", "20")))
    socket_timeout: int = field(default_factory=lambda: int(os.getenv("REDIS_SOCKET_TIMEOUT", "5")))
    socket_connect_timeout: int = field(default_factory=lambda: int(os.getenv("REDIS_CONNECT_TIMEOUT", "5")))
    decode_responses: bool = False  # We want bytes for orjson serialization

    doctor_cache_ttl_seconds: int = field(default_factory=lambda: int(os.getenv("DOCTOR_CACHE_TTL", "300")))


@dataclass
class IdentityConfig:
    """UHID generation settings"""
    length: int = field(default_factory=lambda: int(os.getenv("UHID_LENGTH", "10")))
    alphabet: str = string.ascii_uppercase + string.digits
    max_attempts: int = field(default_factory=lambda: int(os.getenv("UHID_MAX_ATTEMPTS", "5")))


@dataclass
class DirectoryConfig:
    """Patient directory search settings"""
    min_fragment_length: int = field(default_factory=lambda: int(os.getenv("SEARCH_MIN_LENGTH", "2")))
    result_limit: int = field(default_factory=lambda: int(os.getenv("SEARCH_LIMIT", "20")))
    live_updates: bool = field(default_factory=lambda: os.getenv("LIVE_DIRECTORY", "false").lower() == "true")
    watch_retry_seconds: float = field(default_factory=lambda: float(os.getenv("LIVE_RETRY_SECONDS", "5")))


@dataclass
class LoggingConfig:
    """Logging configuration settings"""
    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    format: str = field(default_factory=lambda: os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"))

    # File logging
    log_file: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE"))
    max_file_size: int = field(default_factory=lambda: int(os.getenv("LOG_MAX_FILE_SIZE", "10485760")))  # 10MB
    backup_count: int = field(default_factory=lambda: int(os.getenv("LOG_BACKUP_COUNT", "5")))


@dataclass
class ApplicationConfig:
    """Main application configuration"""
    app_name: str = field(default_factory=lambda: os.getenv("APP_NAME", "Front Desk Intake Service"))
    app_version: str = field(default_factory=lambda: os.getenv("APP_VERSION", "1.0.0"))
    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")

    # Server settings
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))

    # "mongo" or "memory"
    registry_backend: str = field(default_factory=lambda: os.getenv("REGISTRY_BACKEND", "mongo"))

    # Component configurations
    primary: PrimaryRegistryConfig = field(default_factory=PrimaryRegistryConfig)
    mirror: MirrorRegistryConfig = field(default_factory=MirrorRegistryConfig)
    redis: RedisConfig = field(default_factory=RedisConfig)
    identity: IdentityConfig = field(default_factory=IdentityConfig)
    directory: DirectoryConfig = field(default_factory=DirectoryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self):
        """Validate configuration after initialization"""
        self.validate()

    def validate(self):
        """Validate configuration settings"""
        errors = []

        if self.registry_backend not in ("mongo", "memory"):
            errors.append(f"Unknown registry backend '{self.registry_backend}'")

        if self.registry_backend == "mongo":
            if not self.primary.uri or not self.primary.name:
                errors.append("Primary registry URI and database name are required")
            if not self.mirror.uri or not self.mirror.name:
                errors.append("Mirror registry URI and database name are required")

        if not self.mirror.hospital_name:
            errors.append("Hospital name is required for mirror records")

        if not (1 <= self.redis.port <= 65535):
            errors.append("Redis port must be between 1 and 65535")

        if self.identity.length < 1:
            errors.append("UHID length must be positive")
        if self.identity.max_attempts < 1:
            errors.append("UHID max attempts must be at least 1")

        if self.directory.min_fragment_length < 0:
            errors.append("Search minimum length cannot be negative")

        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary (for logging/debugging)"""
        config_dict = {}
        for field_name, field_value in self.__dict__.items():
            if hasattr(field_value, '__dict__'):
                config_dict[field_name] = field_value.__dict__.copy()
                # Mask sensitive values
                if field_name in ('primary', 'mirror'):
                    config_dict[field_name]['uri'] = _mask_uri(config_dict[field_name]['uri'])
                elif field_name == 'redis':
                    if config_dict[field_name].get('password'):
                        config_dict[field_name]['password'] = '***masked***'
            else:
                config_dict[field_name] = field_value
        return config_dict


def _mask_uri(uri: str) -> str:
    return re.sub(r"//([^:/@]+):([^@]+)@", r"//\1:***masked***@", uri)


@lru_cache(maxsize=1)
def get_config() -> ApplicationConfig:
    """
    Get application configuration singleton.
    Uses LRU cache to ensure same instance is returned.
    """
    config = ApplicationConfig()
    logger.info(f"Configuration loaded for environment: {config.environment}")
    return config


def load_config_from_file(file_path: str) -> ApplicationConfig:
    """
    Load configuration from a JSON file.
    Nested sections map onto SECTION_KEY environment variables.
    """
    import json

    try:
        with open(file_path, 'r') as f:
            config_data = json.load(f)

        for key, value in config_data.items():
            if isinstance(value, dict):
                for sub_key, sub_value in value.items():
                    env_key = f"{key.upper()}_{sub_key.upper()}"
                    os.environ[env_key] = str(sub_value)
            else:
                os.environ[key.upper()] = str(value)

        get_config.cache_clear()
        return get_config()

    except FileNotFoundError:
        logger.error(f"Configuration file not found: {file_path}")
        raise
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in configuration file: {e}")
        raise


# Convenience functions for common config access patterns
def get_redis_config() -> RedisConfig:
    """Get Redis configuration"""
    return get_config().redis


def get_identity_config() -> IdentityConfig:
    return get_config().identity


def get_directory_config() -> DirectoryConfig:
    return get_config().directory
