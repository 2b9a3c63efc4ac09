"""Creates the access groups for a shared folder and grants them rights on it."""

from __future__ import annotations

from typing import Any, Protocol

import structlog

from folder_access_provisioner.errors import ProvisioningAdapterError
from folder_access_provisioner.filesystem.models import FOLDER_AND_CONTENTS
from folder_access_provisioner.provisioning.log_sink import OutcomeLogSink
from folder_access_provisioner.provisioning.models import (
    GROUP_SPECS,
    GroupSpec,
    OutcomeEntry,
    OutcomeLog,
    ProvisioningRequest,
    group_name_for,
)

logger = structlog.get_logger()

RUN_SEPARATOR = "-" * 72


class DirectoryAdapter(Protocol):
    def exists(self, dn: str) -> bool:
        ...

    def create_security_group(
        self, name: str, display_name: str, path: str, description: str
    ) -> str:
        ...

    def list_organizational_units(self) -> list[str]:
        ...

    def close(self) -> None:
        ...


class AclAdapter(Protocol):
    def principal_for(self, group_name: str) -> str:
        ...

    def exists(self, path: str) -> bool:
        ...

    def read_acl(self, path: str) -> Any:
        ...

    def write_acl(self, path: str, acl: Any) -> None:
        ...


def _cause(error: Exception) -> str:
    if isinstance(error, ProvisioningAdapterError):
        return str(error)
    return f"{type(error).__name__}: {error}"


class Provisioner:
    """Runs one provisioning request against the directory and the filesystem.

    The run stops at the first failed precondition or failed group creation.
    A failed grant is recorded and the next group is still attempted, so a
    run can leave a group without its rights but never skips silently.
    Nothing is rolled back and nothing is retried.
    """

    def __init__(
        self,
        directory: DirectoryAdapter,
        filesystem: AclAdapter,
        sink: OutcomeLogSink,
        group_specs: tuple[GroupSpec, ...] = GROUP_SPECS,
    ) -> None:
        self._directory = directory
        self._filesystem = filesystem
        self._sink = sink
        self._group_specs = group_specs

    def provision(self, request: ProvisioningRequest) -> OutcomeLog:
        folder = request.folder_path
        ou = request.organizational_unit_path
        # Every structured event of the run carries the folder and the OU
        with structlog.contextvars.bound_contextvars(folder=folder, organizational_unit=ou):
            return self._run(folder, ou)

    def _run(self, folder: str, ou: str) -> OutcomeLog:
        entries: list[OutcomeEntry] = []

        def record(entry: OutcomeEntry) -> None:
            entries.append(entry)
            self._sink.append(entry.message)
            log = logger.warning if entry.kind.is_failure else logger.info
            log(
                entry.kind.value,
                group_name=entry.group_name,
                access_level=entry.access_level.name if entry.access_level else None,
                cause=entry.cause,
            )

        self._sink.append(RUN_SEPARATOR, timestamped=False)
        self._sink.append(f"Provisioning '{folder}' in '{ou}'")
        logger.info("provisioning_started")

        if not self._filesystem.exists(folder):
            record(OutcomeEntry.folder_not_found(folder))
            return OutcomeLog(tuple(entries))

        if not self._organizational_unit_exists(ou):
            record(OutcomeEntry.organizational_unit_not_found(ou))
            return OutcomeLog(tuple(entries))

        for spec in self._group_specs:
            group_name = group_name_for(spec, folder)

            try:
                self._directory.create_security_group(
                    name=group_name,
                    display_name=group_name,
                    path=ou,
                    description=folder,
                )
            except ProvisioningAdapterError as e:
                record(OutcomeEntry.group_creation_failed(group_name, _cause(e)))
                break
            except Exception as e:
                logger.exception("group_creation_crashed", group_name=group_name)
                record(OutcomeEntry.group_creation_failed(group_name, _cause(e)))
                break
            record(OutcomeEntry.group_created(group_name, ou))

            try:
                self._grant(folder, group_name, spec)
            except ProvisioningAdapterError as e:
                record(OutcomeEntry.access_grant_failed(group_name, spec.access_level, folder, _cause(e)))
                continue
            except Exception as e:
                logger.exception("access_grant_crashed", group_name=group_name)
                record(OutcomeEntry.access_grant_failed(group_name, spec.access_level, folder, _cause(e)))
                continue
            record(OutcomeEntry.access_granted(group_name, spec.access_level, folder))

        outcome = OutcomeLog(tuple(entries))
        logger.info(
            "provisioning_finished",
            succeeded=outcome.succeeded,
            failure_count=len(outcome.failures),
        )
        return outcome

    def _organizational_unit_exists(self, ou: str) -> bool:
        try:
            return self._directory.exists(ou)
        except ProvisioningAdapterError as e:
            logger.warning("organizational_unit_lookup_failed", reason=str(e))
            return False
        except Exception:
            logger.exception("organizational_unit_lookup_crashed")
            return False

    def _grant(self, folder: str, group_name: str, spec: GroupSpec) -> None:
        # Read-modify-write; a concurrent ACL change between read and write is lost.
        acl = self._filesystem.read_acl(folder)
        acl = acl.add_allow_rule(
            self._filesystem.principal_for(group_name),
            spec.access_level,
            FOLDER_AND_CONTENTS,
        )
        self._filesystem.write_acl(folder, acl)
