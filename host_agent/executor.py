"""
Executor
========

Runs controller-supplied scripts and commands on the host, and reboots it.

  POSIX:   script → temp .sh (0700) executed directly, command → sh -c,
           reboot → shutdown -r now
  Windows: script → temp .bat via cmd /C,   command → cmd /C,
           reboot → shutdown /r /t 0

stdout and stderr are merged into one output string. Failures come back in
ExecResult.error, never as exceptions.
"""

from __future__ import annotations
import logging
import os
import platform
import subprocess
import tempfile
from typing import Optional

from .models import ExecResult

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300


def is_windows() -> bool:
    return platform.system() == "Windows"


class ShellExecutor:
    def __init__(self, timeout: Optional[float] = DEFAULT_TIMEOUT, windows: Optional[bool] = None):
        self.timeout = timeout
        self.windows = is_windows() if windows is None else windows

    # ─── Scripts ──────────────────────────────────────────────────────────────

    def run_script(self, script: str) -> ExecResult:
        suffix = ".bat" if self.windows else ".sh"
        content = "@echo off\r\n" + script if self.windows else script

        try:
            fd, path = tempfile.mkstemp(suffix=suffix, prefix="host-agent-")
        except OSError as e:
            log.error(f"[executor] Cannot create script file: {e}")
            return ExecResult("", f"cannot create script file: {e}")

        try:
            try:
                with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                    f.write(content)
                os.chmod(path, 0o700)
            except (OSError, UnicodeError) as e:
                log.error(f"[executor] Cannot write script file: {e}")
                return ExecResult("", f"cannot write script file: {e}")

            argv = ["cmd", "/C", path] if self.windows else [path]
            return self._run(argv)
        finally:
            try:
                os.remove(path)
            except OSError as e:
                log.warning(f"[executor] Cannot remove script file {path}: {e}")

    # ─── Commands ─────────────────────────────────────────────────────────────

    def run_command(self, command: str) -> ExecResult:
        argv = ["cmd", "/C", command] if self.windows else ["sh", "-c", command]
        return self._run(argv)

    def reboot(self) -> Optional[str]:
        """Returns None once the reboot was issued, else the error."""
        argv = ["shutdown", "/r", "/t", "0"] if self.windows else ["shutdown", "-r", "now"]
        log.warning("[executor] Rebooting host")
        result = self._run(argv)
        return result.error

    def _run(self, argv: list[str]) -> ExecResult:
        log.debug(f"[executor] exec: {' '.join(argv)}")
        try:
            proc = subprocess.run(
                argv,
                stdout  = subprocess.PIPE,
                stderr  = subprocess.STDOUT,
                text    = True,
                errors  = "replace",
                timeout = self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            output = e.output or ""
            if isinstance(output, bytes):
                output = output.decode(errors="replace")
            return ExecResult(output, f"timed out after {self.timeout}s")
        except (OSError, ValueError) as e:
            return ExecResult("", f"cannot execute {argv[0]}: {e}")

        if proc.returncode != 0:
            return ExecResult(proc.stdout, f"exit status {proc.returncode}")
        return ExecResult(proc.stdout)
