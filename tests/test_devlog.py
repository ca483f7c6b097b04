"""Tests for the devlog side channel."""

import subprocess
from pathlib import Path

import pytest

from maiass.config import DevlogConfig
from maiass.models import RemoteInfo
from maiass.services import devlog
from maiass.services.devlog import DevlogNotifier


class FakePopen:
    calls: list[list[str]] = []

    def __init__(self, args: list[str], **kwargs) -> None:
        FakePopen.calls.append(args)
        self.kwargs = kwargs
        self.waited = False

    def wait(self, timeout: float | None = None) -> int:
        self.waited = True
        return 0


@pytest.fixture
def popen(monkeypatch: pytest.MonkeyPatch) -> type[FakePopen]:
    FakePopen.calls = []
    monkeypatch.setattr(devlog.subprocess, "Popen", FakePopen)
    monkeypatch.setattr(devlog.shutil, "which", lambda name: f"/usr/local/bin/{name}")
    return FakePopen


class TestDevlogNotifier:
    def test_sends_flattened_message(self, tmp_path: Path, popen: type[FakePopen]) -> None:
        remote = RemoteInfo(
            url="git@github.com:acme/widgets.git", provider="github", owner="acme", repo="widgets"
        )
        notifier = DevlogNotifier(DevlogConfig(), tmp_path, remote)

        notifier.notify("Add notes\n- first\n- second", "ABC-9")

        assert popen.calls == [
            [
                "/usr/local/bin/devlog.sh",
                "Add notes; - first; - second",
                "",
                "widgets",
                "acme",
                "ABC-9",
            ]
        ]

    def test_placeholders_without_remote_or_ticket(
        self, tmp_path: Path, popen: type[FakePopen]
    ) -> None:
        DevlogNotifier(DevlogConfig(), tmp_path).notify("Fix typo")
        [args] = popen.calls
        assert args[3:] == ["unknown-project", "unknown-client", "no-ticket"]

    def test_disabled(self, tmp_path: Path, popen: type[FakePopen]) -> None:
        DevlogNotifier(DevlogConfig(enabled=False), tmp_path).notify("Fix typo")
        assert popen.calls == []

    def test_missing_executable(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(devlog.shutil, "which", lambda name: None)

        def explode(*args, **kwargs):
            raise AssertionError("should not spawn")

        monkeypatch.setattr(devlog.subprocess, "Popen", explode)
        DevlogNotifier(DevlogConfig(), tmp_path).notify("Fix typo")

    def test_spawn_failure_ignored(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(devlog.shutil, "which", lambda name: "/nowhere/devlog.sh")

        def fail(*args, **kwargs):
            raise OSError("exec format error")

        monkeypatch.setattr(devlog.subprocess, "Popen", fail)
        DevlogNotifier(DevlogConfig(), tmp_path).notify("Fix typo")

    def test_real_spawn_is_detached(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        script = tmp_path / "devlog.sh"
        marker = tmp_path / "called"
        script.write_text(f"#!/bin/sh\necho \"$@\" > {marker}\n")
        script.chmod(0o755)
        monkeypatch.setenv("PATH", f"{tmp_path}:/usr/bin:/bin")

        spawned: list[subprocess.Popen] = []
        real_popen = subprocess.Popen

        def tracking(*args, **kwargs):
            proc = real_popen(*args, **kwargs)
            spawned.append(proc)
            return proc

        monkeypatch.setattr(devlog.subprocess, "Popen", tracking)
        notifier = DevlogNotifier(DevlogConfig(), tmp_path)
        notifier.notify("Fix typo", "ABC-1")
        notifier.wait(timeout=10)

        [proc] = spawned
        assert proc.returncode == 0
        assert marker.read_text().strip() == "Fix typo  unknown-project unknown-client ABC-1"

    def test_spawned_process_is_reaped(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(devlog.shutil, "which", lambda name: f"/usr/local/bin/{name}")
        spawned: list[FakePopen] = []

        def tracking(args, **kwargs):
            proc = FakePopen(args, **kwargs)
            spawned.append(proc)
            return proc

        monkeypatch.setattr(devlog.subprocess, "Popen", tracking)
        notifier = DevlogNotifier(DevlogConfig(), tmp_path)

        notifier.notify("Fix typo")
        notifier.notify("Fix another typo")
        notifier.wait(timeout=5)

        assert [proc.waited for proc in spawned] == [True, True]
