"""Tests for logging configuration and the structured events of a run."""

import json
import logging
from logging.handlers import RotatingFileHandler
from unittest.mock import MagicMock

import pytest
import structlog

from folder_access_provisioner.errors import AclError
from folder_access_provisioner.main import configure_logging
from folder_access_provisioner.provisioning.models import ProvisioningRequest
from folder_access_provisioner.provisioning.service import Provisioner

GROUPS_OU = "OU=Groups,DC=corp,DC=local"
FINANCE_FOLDER = "D:\\Finance"


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    for handler in logging.root.handlers:
        handler.close()
    logging.root.handlers.clear()
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


def read_events(log_file):
    return [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]


def run_with_failing_first_grant(sink):
    directory = MagicMock()
    directory.exists.return_value = True
    filesystem = MagicMock()
    filesystem.exists.return_value = True
    filesystem.principal_for.side_effect = lambda name: name
    acl = MagicMock()
    acl.add_allow_rule.return_value = acl
    filesystem.read_acl.return_value = acl
    filesystem.write_acl.side_effect = [AclError("Access is denied. (SetNamedSecurityInfo, 5)"), None]

    request = ProvisioningRequest(folder_path=FINANCE_FOLDER, organizational_unit_path=GROUPS_OU)
    return Provisioner(directory, filesystem, sink).provision(request)


def test_console_only():
    configure_logging(log_level="DEBUG", log_file="")

    assert len(logging.root.handlers) == 1
    assert not isinstance(logging.root.handlers[0], RotatingFileHandler)
    assert logging.root.level == logging.DEBUG


def test_rotating_file_handler(tmp_path):
    log_file = tmp_path / "logs" / "app.log"

    configure_logging(
        log_level="INFO",
        log_file=str(log_file),
        log_file_max_bytes=5_000_000,
        log_file_backup_count=3,
    )

    file_handler = logging.root.handlers[1]
    assert isinstance(file_handler, RotatingFileHandler)
    assert file_handler.maxBytes == 5_000_000
    assert file_handler.backupCount == 3
    assert log_file.exists()


def test_unknown_level_falls_back_to_info():
    configure_logging(log_level="CHATTY", log_file="")

    assert logging.root.level == logging.INFO


def test_grant_failure_event_carries_run_context(tmp_path, sink):
    log_file = tmp_path / "app.log"
    configure_logging(log_level="INFO", log_file=str(log_file))

    run_with_failing_first_grant(sink)

    events = read_events(log_file)
    failed = [e for e in events if e["event"] == "access_grant_failed"]
    assert len(failed) == 1
    assert failed[0]["level"] == "warning"
    assert failed[0]["group_name"] == "PG-RO-Finance"
    assert failed[0]["access_level"] == "READ_ONLY"
    assert failed[0]["cause"] == "Access is denied. (SetNamedSecurityInfo, 5)"
    assert failed[0]["folder"] == FINANCE_FOLDER
    assert failed[0]["organizational_unit"] == GROUPS_OU
    assert "timestamp" in failed[0]


def test_every_run_event_names_the_folder(tmp_path, sink):
    log_file = tmp_path / "app.log"
    configure_logging(log_level="INFO", log_file=str(log_file))

    run_with_failing_first_grant(sink)

    run_events = read_events(log_file)
    assert [e["event"] for e in run_events] == [
        "provisioning_started",
        "group_created",
        "access_grant_failed",
        "group_created",
        "access_granted",
        "provisioning_finished",
    ]
    assert {e["folder"] for e in run_events} == {FINANCE_FOLDER}


def test_run_context_is_unbound_afterwards(tmp_path, sink):
    configure_logging(log_level="INFO", log_file=str(tmp_path / "app.log"))

    run_with_failing_first_grant(sink)

    assert structlog.contextvars.get_contextvars() == {}


def test_debug_events_filtered_at_info(tmp_path, sink):
    log_file = tmp_path / "app.log"
    configure_logging(log_level="INFO", log_file=str(log_file))

    run_with_failing_first_grant(sink)

    assert all(e["level"] != "debug" for e in read_events(log_file))
