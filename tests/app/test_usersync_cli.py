from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import pytest

from usersync.domain.batch import BatchFailure, BatchOutcome
from usersync.domain.errors import NotFoundError
from usersync.domain.model import ReconcileOutcome, SyncRun
from usersync.domain.reconciliation import DeactivationResult, ReconcileResult
from usersync.ui import cli

if TYPE_CHECKING:
    from pathlib import Path

    from usersync.domain.records import PlatformUserRecord
    from usersync.domain.time_windows import TimeWindow


@pytest.fixture(autouse=True)
def _no_admin_allowlist(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ADMIN_EMAILS", raising=False)


def _exit_code(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc:
        cli.main(argv)
    return int(exc.value.code or 0)


def test_reconcile_command_prints_result(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    captured: dict[str, Any] = {}
    user_id = uuid4()

    def fake_reconcile(record: PlatformUserRecord, **kwargs: Any) -> ReconcileResult:
        captured["record"] = record
        captured.update(kwargs)
        return ReconcileResult(
            success=True,
            user_id=user_id,
            external_id="ext-1",
            outcome=ReconcileOutcome.CREATED,
            message="User created successfully",
        )

    monkeypatch.setattr(cli, "reconcile_platform_user", fake_reconcile)

    cli.main(["reconcile", "--external-id", "ext-1", "--email", "a@example.com", "--name", "A"])

    record = captured["record"]
    assert (record.external_id, record.email, record.name) == ("ext-1", "a@example.com", "A")
    assert captured["actor"] is None
    output = json.loads(capsys.readouterr().out)
    assert output == {
        "success": True,
        "userId": str(user_id),
        "externalId": "ext-1",
        "outcome": "created",
        "message": "User created successfully",
    }


def test_sync_command_reports_failures(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], tmp_path: Path
) -> None:
    run_id = uuid4()
    batch_file = tmp_path / "users.json"
    batch_file.write_text("[]")
    captured: dict[str, Any] = {}

    def fake_sync(path: str, **kwargs: Any) -> BatchOutcome:
        captured["path"] = path
        captured.update(kwargs)
        return BatchOutcome(
            failed=[BatchFailure("ext-2", "email 'x' is malformed", "ValidationError")],
            total=1,
            run_id=run_id,
        )

    monkeypatch.setattr(cli, "sync_platform_users_from_file", fake_sync)

    cli.main(["sync", str(batch_file), "--platform", "acme"])

    assert captured == {"path": str(batch_file), "platform": "acme", "actor": None}
    output = json.loads(capsys.readouterr().out)
    assert output["runId"] == str(run_id)
    assert output["failed"] == [
        {"externalId": "ext-2", "error": "email 'x' is malformed", "errorType": "ValidationError"}
    ]


def test_deactivate_command(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    at = datetime(2025, 1, 1, tzinfo=UTC)

    def fake_deactivate(external_id: str, **kwargs: Any) -> DeactivationResult:
        assert kwargs["reason"] == "Left company"
        return DeactivationResult(
            user_id=uuid4(), external_id=external_id, deactivated_at=at, cancelled_bookings=3
        )

    monkeypatch.setattr(cli, "deactivate_platform_user", fake_deactivate)

    cli.main(["deactivate", "ext-9", "--reason", "Left company"])

    output = json.loads(capsys.readouterr().out)
    assert output["externalId"] == "ext-9"
    assert output["cancelledBookings"] == 3
    assert output["deactivatedAt"] == at.isoformat()


def test_runs_command_builds_window(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    captured: dict[str, TimeWindow | None] = {}
    run = SyncRun.completed(
        platform="acme",
        run_at=datetime(2025, 1, 2, tzinfo=UTC),
        records_processed=2,
        failures=[],
    )

    def fake_list(window: TimeWindow | None = None) -> list[SyncRun]:
        captured["window"] = window
        return [run]

    monkeypatch.setattr(cli, "list_sync_runs", fake_list)

    cli.main(["runs", "--start", "2025-01-01T03:00:00+03:00", "--end", "2025-01-03T00:00:00Z"])

    window = captured["window"]
    assert window is not None
    assert window.start == datetime(2025, 1, 1, tzinfo=UTC)
    assert window.end == datetime(2025, 1, 3, tzinfo=UTC)
    output = json.loads(capsys.readouterr().out)
    assert output[0]["status"] == "COMPLETED"
    assert output[0]["recordsProcessed"] == 2
    assert output[0]["failureDetails"] is None


def test_runs_without_window(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: list[TimeWindow | None] = []
    monkeypatch.setattr(cli, "list_sync_runs", lambda window=None: captured.append(window) or [])

    cli.main(["runs"])

    assert captured == [None]


def test_stats_command(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr(cli, "synced_user_count", lambda: 7)

    cli.main(["stats"])

    assert json.loads(capsys.readouterr().out) == {"syncedUsers": 7}


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["unknown"],
        ["reconcile", "--email", "a@example.com"],
        ["runs", "--start", "yesterday"],
        ["runs", "--lookback-hours", "-1"],
        ["runs", "--start", "2025-01-02T00:00:00Z", "--end", "2025-01-01T00:00:00Z"],
    ],
)
def test_invalid_arguments_exit_with_2(argv: list[str]) -> None:
    assert _exit_code(argv) == 2


def test_domain_errors_exit_with_1(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    def fake_deactivate(external_id: str, **_kwargs: Any) -> DeactivationResult:
        raise NotFoundError(f"No user with external id {external_id!r}")

    monkeypatch.setattr(cli, "deactivate_platform_user", fake_deactivate)

    assert _exit_code(["deactivate", "ghost"]) == 1
    assert "No user with external id 'ghost'" in capsys.readouterr().err


def test_admin_allowlist_gates_mutating_commands(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ADMIN_EMAILS", "root@example.com")
    calls: list[str] = []

    def fake_deactivate(external_id: str, **kwargs: Any) -> DeactivationResult:
        calls.append(kwargs["actor"])
        return DeactivationResult(
            user_id=uuid4(),
            external_id=external_id,
            deactivated_at=datetime(2025, 1, 1, tzinfo=UTC),
            cancelled_bookings=0,
        )

    monkeypatch.setattr(cli, "deactivate_platform_user", fake_deactivate)
    monkeypatch.setattr(cli, "synced_user_count", lambda: 0)

    assert _exit_code(["--actor", "intruder@example.com", "deactivate", "ext-1"]) == 1
    assert _exit_code(["deactivate", "ext-1"]) == 1
    cli.main(["--actor", "ROOT@example.com", "deactivate", "ext-1"])
    cli.main(["stats"])

    assert calls == ["ROOT@example.com"]
