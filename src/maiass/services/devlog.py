"""Devlog side channel: fire-and-forget logging of commits to devlog.sh."""

import logging
import shutil
import subprocess
import threading
from pathlib import Path

from ..config import DevlogConfig
from ..models import RemoteInfo

logger = logging.getLogger(__name__)


class DevlogNotifier:
    """Send commit messages to an external devlog executable.

    Nothing here is observable to the caller: a disabled channel, a missing
    executable or a failing spawn are all logged at debug level and ignored.
    Each spawned process is reaped by a daemon thread so it never lingers as
    a zombie while the pipeline keeps running.
    """

    def __init__(self, config: DevlogConfig, repo_root: Path, remote: RemoteInfo | None = None):
        self.config = config
        self.repo_root = repo_root
        self.remote = remote
        self._reapers: list[threading.Thread] = []

    def _executable(self) -> str | None:
        if not self.config.enabled:
            return None
        return shutil.which(self.config.executable)

    def notify(self, message: str, ticket_id: str | None = None) -> None:
        executable = self._executable()
        if executable is None:
            logger.debug("devlog not available, skipping: %s", message.splitlines()[0] if message else "")
            return

        project = (self.remote.repo if self.remote else None) or "unknown-project"
        client = (self.remote.owner if self.remote else None) or "unknown-client"
        args = [
            executable,
            message.replace("\n", "; "),
            "",
            project,
            client,
            ticket_id or "no-ticket",
        ]
        try:
            proc = subprocess.Popen(
                args,
                cwd=self.repo_root,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("devlog call failed: %s", e)
            return

        reaper = threading.Thread(target=proc.wait, name="devlog-reaper", daemon=True)
        reaper.start()
        self._reapers.append(reaper)

    def wait(self, timeout: float | None = None) -> None:
        """Block until every spawned devlog process has exited (or timeout per process)."""
        for reaper in self._reapers:
            reaper.join(timeout)
        self._reapers = [reaper for reaper in self._reapers if reaper.is_alive()]
