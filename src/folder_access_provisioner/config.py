"""Application configuration using Pydantic settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Directory service (Active Directory over LDAP)
    ldap_server: str = Field(
        "", alias="LDAP_SERVER",
        description="Domain controller hostname or IP. Required unless TEST_MODE is enabled.",
    )
    ldap_port: int = Field(
        389, alias="LDAP_PORT",
        description="LDAP port. Use 636 together with LDAP_USE_SSL for LDAPS.",
    )
    ldap_use_ssl: bool = Field(
        False, alias="LDAP_USE_SSL",
        description="Connect with LDAPS instead of plain LDAP.",
    )
    ldap_bind_dn: str = Field(
        "", alias="LDAP_BIND_DN",
        description="Account used to bind, e.g. CN=svc-provision,OU=Service,DC=corp,DC=local or corp\\svc-provision.",
    )
    ldap_password: str = Field(
        "", alias="LDAP_PASSWORD",
        description="Password for LDAP_BIND_DN.",
    )
    ldap_base_dn: str = Field(
        "", alias="LDAP_BASE_DN",
        description="Search base for organizational unit enumeration, e.g. DC=corp,DC=local.",
    )
    ldap_connect_timeout: int = Field(
        10, alias="LDAP_CONNECT_TIMEOUT",
        description="Socket connect timeout in seconds for the domain controller.",
    )
    netbios_domain: str = Field(
        "", alias="NETBIOS_DOMAIN",
        description="Domain prefix used when resolving new groups on the file server, e.g. CORP. Empty = unqualified names.",
    )

    # Outcome transcript
    outcome_log_path: str = Field(
        "logs/provisioning.log", alias="OUTCOME_LOG_PATH",
        description="Append-only plain-text transcript of every provisioning run.",
    )

    # Test Mode (no domain controller / Windows host needed)
    test_mode: bool = Field(
        False, alias="TEST_MODE",
        description="Use the in-memory directory and ACL adapters instead of LDAP and win32security.",
    )
    mock_directory_path: str = Field(
        "config/mock_directory.yaml", alias="MOCK_DIRECTORY_PATH",
        description="YAML file seeding the in-memory directory with OUs and existing groups in test mode.",
    )

    # Server
    host: str = Field(
        "127.0.0.1", alias="HOST",
        description="Host address to bind the aiohttp server to.",
    )
    port: int = Field(
        8080, alias="PORT",
        description="Port number for the aiohttp server.",
    )

    # Logging
    log_level: str = Field(
        "INFO", alias="LOG_LEVEL",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL.",
    )
    log_file: str = Field(
        "", alias="LOG_FILE",
        description="Path to log file for file-based logging with rotation. Empty = console only.",
    )
    log_file_max_bytes: int = Field(
        10_485_760, alias="LOG_FILE_MAX_BYTES",
        description="Max size in bytes per log file before rotation. Default: 10 MB.",
    )
    log_file_backup_count: int = Field(
        5, alias="LOG_FILE_BACKUP_COUNT",
        description="Number of rotated backup log files to keep.",
    )


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
