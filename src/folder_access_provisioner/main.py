"""Application entrypoint - aiohttp server hosting the provisioning form."""

import logging
from concurrent.futures import ThreadPoolExecutor

import structlog
from aiohttp.web import Application, run_app

from folder_access_provisioner.config import Settings, get_settings
from folder_access_provisioner.errors import DirectoryError
from folder_access_provisioner.provisioning.log_sink import OutcomeLogSink
from folder_access_provisioner.provisioning.service import Provisioner
from folder_access_provisioner.web import (
    DIRECTORY_KEY,
    OU_LOOKUP_KEY,
    PROVISIONER_KEY,
    PROVISIONING_EXECUTOR_KEY,
    SETTINGS_KEY,
    OrganizationalUnitLookup,
    setup_routes,
)


def configure_logging(
    log_level: str = "INFO",
    log_file: str = "",
    log_file_max_bytes: int = 10_485_760,
    log_file_backup_count: int = 5,
) -> None:
    """Configure structlog and standard library logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file. Empty string = console only.
        log_file_max_bytes: Max size per log file before rotation (default: 10 MB)
        log_file_backup_count: Number of rotated backup files to keep (default: 5)
    """
    from logging.handlers import RotatingFileHandler
    from pathlib import Path

    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.root
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            filename=log_file,
            maxBytes=log_file_max_bytes,
            backupCount=log_file_backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            # JSON lines in the file, readable output on the console
            structlog.processors.JSONRenderer() if log_file else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


logger = structlog.get_logger()


def create_adapters(settings: Settings):
    """Build the directory and ACL adapters for the configured mode."""
    if settings.test_mode:
        from folder_access_provisioner.directory.mock_directory import MockDirectory
        from folder_access_provisioner.filesystem.mock_acl_client import InMemoryAclClient

        directory = MockDirectory.from_yaml(settings.mock_directory_path)
        filesystem = InMemoryAclClient(known_principals=directory.group_names)
        logger.info("test_mode_enabled", mock_directory_path=settings.mock_directory_path)
        return directory, filesystem

    from folder_access_provisioner.directory.ldap_client import LdapDirectory
    from folder_access_provisioner.filesystem.acl_client import WindowsAclClient

    directory = LdapDirectory(
        server=settings.ldap_server,
        bind_dn=settings.ldap_bind_dn,
        password=settings.ldap_password,
        base_dn=settings.ldap_base_dn,
        port=settings.ldap_port,
        use_ssl=settings.ldap_use_ssl,
        connect_timeout=settings.ldap_connect_timeout,
    )
    filesystem = WindowsAclClient(netbios_domain=settings.netbios_domain)
    return directory, filesystem


def create_app(settings: Settings | None = None, directory=None, filesystem=None) -> Application:
    """Create and configure the aiohttp application.

    The organizational unit list is read from the directory once, here, and
    kept for the lifetime of the application.
    """
    settings = settings or get_settings()
    if directory is None or filesystem is None:
        directory, filesystem = create_adapters(settings)

    try:
        ou_lookup = OrganizationalUnitLookup.from_directory(directory)
        logger.info("organizational_units_loaded", count=len(ou_lookup))
    except DirectoryError as e:
        ou_lookup = OrganizationalUnitLookup([])
        logger.warning("organizational_units_unavailable", reason=str(e))

    sink = OutcomeLogSink(settings.outcome_log_path)
    provisioner = Provisioner(directory=directory, filesystem=filesystem, sink=sink)

    app = Application()
    app[SETTINGS_KEY] = settings
    app[DIRECTORY_KEY] = directory
    app[OU_LOOKUP_KEY] = ou_lookup
    app[PROVISIONER_KEY] = provisioner
    app[PROVISIONING_EXECUTOR_KEY] = ThreadPoolExecutor(
        max_workers=1, thread_name_prefix="provisioning"
    )
    setup_routes(app)

    async def shutdown(app: Application) -> None:
        # Let a run in progress finish before the directory goes away
        app[PROVISIONING_EXECUTOR_KEY].shutdown(wait=True)
        app[DIRECTORY_KEY].close()

    app.on_cleanup.append(shutdown)
    return app


def main() -> None:
    """Run the provisioning server."""
    settings = get_settings()
    configure_logging(
        log_level=settings.log_level,
        log_file=settings.log_file,
        log_file_max_bytes=settings.log_file_max_bytes,
        log_file_backup_count=settings.log_file_backup_count,
    )

    logger.info(
        "starting_provisioning_server",
        host=settings.host,
        port=settings.port,
        test_mode=settings.test_mode,
    )

    app = create_app(settings)
    run_app(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
