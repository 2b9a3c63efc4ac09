"""Web presentation module."""

from folder_access_provisioner.web.lookup import OrganizationalUnitLookup
from folder_access_provisioner.web.routes import (
    DIRECTORY_KEY,
    OU_LOOKUP_KEY,
    PROVISIONER_KEY,
    PROVISIONING_EXECUTOR_KEY,
    SETTINGS_KEY,
    render_form,
    setup_routes,
)

__all__ = [
    "DIRECTORY_KEY",
    "OU_LOOKUP_KEY",
    "PROVISIONER_KEY",
    "PROVISIONING_EXECUTOR_KEY",
    "SETTINGS_KEY",
    "OrganizationalUnitLookup",
    "render_form",
    "setup_routes",
]
