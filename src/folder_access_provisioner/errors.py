"""Exceptions raised by the directory and filesystem adapters."""


class ProvisioningAdapterError(Exception):
    """Base class for failures reported by an external collaborator."""


class DirectoryError(ProvisioningAdapterError):
    """The directory service rejected or could not perform a request."""


class AclError(ProvisioningAdapterError):
    """Reading, changing or writing a folder ACL failed."""
