"""Data models for folder access provisioning."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field, field_validator

_PATH_SEPARATORS = re.compile(r"[\\/]")


class AccessLevel(Enum):
    """The two access levels a provisioned folder gets, with their NTFS right."""

    READ_ONLY = ("PG-RO-", "ReadAndExecute", 0x1200A9)
    READ_WRITE = ("PG-RW-", "Modify", 0x1301BF)

    def __init__(self, name_prefix: str, right_name: str, access_mask: int) -> None:
        self.name_prefix = name_prefix
        self.right_name = right_name
        self.access_mask = access_mask


@dataclass(frozen=True, slots=True)
class GroupSpec:
    """Naming rule and access level for one of the generated groups."""

    name_prefix: str
    access_level: AccessLevel


GROUP_SPECS: tuple[GroupSpec, ...] = tuple(
    GroupSpec(name_prefix=level.name_prefix, access_level=level)
    for level in (AccessLevel.READ_ONLY, AccessLevel.READ_WRITE)
)


def base_name_of(folder_path: str) -> str:
    """Return the last segment of a folder path.

    Both Windows and POSIX separators are accepted. Trailing separators and
    whitespace around the path or the segment are ignored, so
    ``"D:\\Finance\\ "`` and ``"D:\\Finance"`` both give ``"Finance"``.
    """
    segments = [s.strip() for s in _PATH_SEPARATORS.split(folder_path)]
    segments = [s for s in segments if s]
    if not segments:
        return ""
    return segments[-1]


def group_name_for(spec: GroupSpec, folder_path: str) -> str:
    return spec.name_prefix + base_name_of(folder_path)


class ProvisioningRequest(BaseModel):
    """Folder and organizational unit submitted from the form."""

    organizational_unit_path: str = Field(..., description="Distinguished name of the target OU")
    folder_path: str = Field(..., description="Shared folder the groups are granted access to")

    @field_validator("organizational_unit_path", "folder_path")
    @classmethod
    def strip_and_require(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("folder_path")
    @classmethod
    def require_base_name(cls, v: str) -> str:
        if not base_name_of(v):
            raise ValueError(f"folder_path has no final segment to name groups after: {v!r}")
        return v


class OutcomeKind(Enum):
    FOLDER_NOT_FOUND = "folder_not_found"
    ORGANIZATIONAL_UNIT_NOT_FOUND = "organizational_unit_not_found"
    GROUP_CREATED = "group_created"
    GROUP_CREATION_FAILED = "group_creation_failed"
    ACCESS_GRANTED = "access_granted"
    ACCESS_GRANT_FAILED = "access_grant_failed"

    @property
    def is_failure(self) -> bool:
        return self not in (OutcomeKind.GROUP_CREATED, OutcomeKind.ACCESS_GRANTED)

    @property
    def is_fatal(self) -> bool:
        """Whether this entry ends the run."""
        return self in (
            OutcomeKind.FOLDER_NOT_FOUND,
            OutcomeKind.ORGANIZATIONAL_UNIT_NOT_FOUND,
            OutcomeKind.GROUP_CREATION_FAILED,
        )


@dataclass(frozen=True, slots=True)
class OutcomeEntry:
    """One human-readable result line and what it refers to."""

    kind: OutcomeKind
    message: str
    group_name: str | None = None
    access_level: AccessLevel | None = None
    cause: str | None = None

    @classmethod
    def folder_not_found(cls, folder_path: str) -> OutcomeEntry:
        return cls(
            OutcomeKind.FOLDER_NOT_FOUND,
            f"ERROR - '{folder_path}' folder does not exists",
        )

    @classmethod
    def organizational_unit_not_found(cls, ou_path: str) -> OutcomeEntry:
        return cls(
            OutcomeKind.ORGANIZATIONAL_UNIT_NOT_FOUND,
            f"ERROR - '{ou_path}' organizational unit does not exists",
        )

    @classmethod
    def group_created(cls, group_name: str, ou_path: str) -> OutcomeEntry:
        return cls(
            OutcomeKind.GROUP_CREATED,
            f"SUCCESS - '{group_name}' group created in '{ou_path}'",
            group_name=group_name,
        )

    @classmethod
    def group_creation_failed(cls, group_name: str, cause: str) -> OutcomeEntry:
        return cls(
            OutcomeKind.GROUP_CREATION_FAILED,
            f"ERROR - '{group_name}' group could not be created: {cause}",
            group_name=group_name,
            cause=cause,
        )

    @classmethod
    def access_granted(
        cls, group_name: str, access_level: AccessLevel, folder_path: str
    ) -> OutcomeEntry:
        return cls(
            OutcomeKind.ACCESS_GRANTED,
            f"SUCCESS - '{group_name}' granted {access_level.right_name} on '{folder_path}'",
            group_name=group_name,
            access_level=access_level,
        )

    @classmethod
    def access_grant_failed(
        cls, group_name: str, access_level: AccessLevel, folder_path: str, cause: str
    ) -> OutcomeEntry:
        return cls(
            OutcomeKind.ACCESS_GRANT_FAILED,
            f"ERROR - '{group_name}' could not be granted {access_level.right_name} "
            f"on '{folder_path}': {cause}",
            group_name=group_name,
            access_level=access_level,
            cause=cause,
        )


@dataclass(frozen=True, slots=True)
class OutcomeLog:
    """Ordered transcript of a finished provisioning run."""

    entries: tuple[OutcomeEntry, ...] = ()

    @property
    def lines(self) -> list[str]:
        return [entry.message for entry in self.entries]

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    @property
    def failures(self) -> list[OutcomeEntry]:
        return [entry for entry in self.entries if entry.kind.is_failure]

    @property
    def succeeded(self) -> bool:
        return bool(self.entries) and not self.failures

    @property
    def aborted(self) -> bool:
        return any(entry.kind.is_fatal for entry in self.entries)
