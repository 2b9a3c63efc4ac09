"""Value types shared by the ACL adapters."""

from dataclasses import dataclass
from enum import IntFlag

from folder_access_provisioner.provisioning.models import AccessLevel


class InheritanceFlags(IntFlag):
    """ACE inheritance bits, same values as ``ntsecuritycon``."""

    NONE = 0x0
    OBJECT_INHERIT = 0x1
    CONTAINER_INHERIT = 0x2
    NO_PROPAGATE_INHERIT = 0x4
    INHERIT_ONLY = 0x8


# Applies to the folder, its subfolders and its files.
FOLDER_AND_CONTENTS = InheritanceFlags.CONTAINER_INHERIT | InheritanceFlags.OBJECT_INHERIT


@dataclass(frozen=True, slots=True)
class AccessRule:
    """An allow entry for one principal."""

    principal_name: str
    access_level: AccessLevel
    inheritance: InheritanceFlags = FOLDER_AND_CONTENTS

    @property
    def access_mask(self) -> int:
        return self.access_level.access_mask
