from __future__ import annotations

import logging
import threading
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from crmsync.config import ConfigurationError
from crmsync.domain.reconciliation import CycleResult
from crmsync.ui import cli

if TYPE_CHECKING:
    from collections.abc import Iterator

REGISTRY = object()


@pytest.fixture(autouse=True)
def _fake_registry(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setattr(cli, "load_registry", lambda target: REGISTRY)
    monkeypatch.setattr(cli, "_CANCEL", threading.Event())
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)


def _fake_run(
    monkeypatch: pytest.MonkeyPatch,
    *results: CycleResult,
) -> dict[str, object]:
    captured: dict[str, object] = {}

    def fake_run(registry: object, **kwargs: object) -> list[CycleResult]:
        captured["registry"] = registry
        captured.update(kwargs)
        return list(results)

    monkeypatch.setattr(cli, "run_reconciliation", fake_run)
    return captured


def _result(*, completed: bool = True) -> CycleResult:
    return CycleResult(
        mapping_key="contacts:Contact",
        window_start=None,
        window_end=datetime(2024, 1, 1, tzinfo=UTC),
        completed=completed,
        error=None if completed else "Salesforce unavailable",
    )


def test_run_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _fake_run(monkeypatch, _result())

    cli.main(["run", "--registry", "crm.registry:build"])

    assert captured["registry"] is REGISTRY
    assert captured["max_workers"] is None
    assert captured["initial_lookback_hours"] is None
    assert captured["cancel"] is cli._CANCEL  # noqa: SLF001  # type: ignore[reportPrivateUsage]


def test_run_with_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _fake_run(monkeypatch, _result())

    cli.main(
        [
            "run",
            "--registry",
            "crm.registry:build",
            "--lookback-hours",
            "2.5",
            "--max-workers",
            "3",
            "--verbose",
        ]
    )

    assert captured["initial_lookback_hours"] == 2.5
    assert captured["max_workers"] == 3
    assert logging.getLogger().level == logging.DEBUG


def test_incomplete_cycles_exit_with_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    _fake_run(monkeypatch, _result(), _result(completed=False))

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["run", "--registry", "crm.registry:build"])

    assert excinfo.value.code == 1


@pytest.mark.parametrize(
    "flags",
    [["--lookback-hours", "-1"], ["--max-workers", "0"]],
)
def test_invalid_flags_exit_with_usage_error(
    monkeypatch: pytest.MonkeyPatch,
    flags: list[str],
) -> None:
    _fake_run(monkeypatch)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["run", "--registry", "crm.registry:build", *flags])

    assert excinfo.value.code == 2


def test_configuration_errors_exit_with_usage_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken(target: str) -> object:
        raise ConfigurationError(f"Cannot import registry module {target!r}")

    monkeypatch.setattr(cli, "load_registry", broken)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["windows", "--registry", "missing:build"])

    assert excinfo.value.code == 2


def test_unexpected_errors_exit_with_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    def explode(registry: object, **kwargs: object) -> list[CycleResult]:
        raise RuntimeError("boom")

    monkeypatch.setattr(cli, "run_reconciliation", explode)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["run", "--registry", "crm.registry:build"])

    assert excinfo.value.code == 1


def test_windows_prints_one_line_per_mapping(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setattr(
        cli,
        "tracked_windows",
        lambda registry: {
            "contacts:Contact": datetime(2024, 1, 1, tzinfo=UTC),
            "accounts:Account": None,
        },
    )

    cli.main(["windows", "--registry", "crm.registry:build"])

    assert capsys.readouterr().out == (
        "contacts:Contact\t2024-01-01T00:00:00+00:00\naccounts:Account\t-\n"
    )


def test_registry_is_required() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["run"])

    assert excinfo.value.code == 2


def test_first_interrupt_cancels_and_second_exits() -> None:
    cli.sigint_handler(2, None)

    assert cli._CANCEL.is_set()  # noqa: SLF001  # type: ignore[reportPrivateUsage]
    with pytest.raises(SystemExit) as excinfo:
        cli.sigint_handler(2, None)
    assert excinfo.value.code == 0
