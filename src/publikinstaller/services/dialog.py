"""Thin wrapper around the ``dialog`` text UI."""

import subprocess
from typing import List, Optional, Sequence, Tuple

from publikinstaller.constants import APPLICATION
from publikinstaller.errors import UserCancelled


class Gauge:
    """A running ``dialog --gauge`` fed with percentages on its stdin."""

    def __init__(self, process, logger):
        self.process = process
        self.logger = logger
        self.closed = False

    def update(self, percent: int):
        if self.closed:
            return
        try:
            self.process.stdin.write(f"{percent}\n")
            self.process.stdin.flush()
        except (BrokenPipeError, OSError) as exc:
            # The gauge died; the command keeps running and decides the outcome.
            self.logger.debug("Gauge stopped accepting updates: %s", exc)
            self.closed = True

    def close(self):
        if not self.closed:
            try:
                self.process.stdin.close()
            except (BrokenPipeError, OSError):
                pass
            self.closed = True
        self.process.wait()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class DialogService:
    """Runs dialog boxes and turns a cancelled box into ``UserCancelled``."""

    def __init__(self, logger, subprocess_module=subprocess, backtitle: str = APPLICATION):
        self.logger = logger
        self.subprocess = subprocess_module
        self.backtitle = backtitle

    def _command(self, args: Sequence[str]) -> List[str]:
        return ["dialog", "--backtitle", self.backtitle, *args]

    def show(self, *args: str) -> Tuple[int, List[str]]:
        """Run a box and return its exit status and the values it printed."""
        result = self.subprocess.run(
            self._command(args),
            stderr=self.subprocess.PIPE,
            text=True,
        )
        values = (result.stderr or "").splitlines()
        return result.returncode, values

    def ask(self, *args: str) -> List[str]:
        returncode, values = self.show(*args)
        if returncode != 0:
            self.logger.debug("Dialog box cancelled with status %s", returncode)
            self.msgbox("Script aborted")
            raise UserCancelled("Installation cancelled by the operator.")
        return values

    def msgbox(self, text: str, height: int = 5, width: int = 50):
        self.show("--msgbox", text, str(height), str(width))

    def yesno(self, text: str, height: int = 12, width: int = 70):
        self.ask("--yesno", text, str(height), str(width))

    def passwordbox(self, text: str) -> str:
        values = self.ask("--insecure", "--passwordbox", text, "8", "50")
        return values[0] if values else ""

    def inputbox(self, text: str, initial: str = "") -> str:
        values = self.ask("--inputbox", text, "8", "50", initial)
        return values[0] if values else ""

    def form(self, title: str, fields: Sequence[Tuple[str, str, int]]) -> List[str]:
        """Show a form of ``(label, initial value, field width)`` rows."""
        args = ["--form", title, "0", "0", str(len(fields))]
        for row, (label, value, width) in enumerate(fields, start=1):
            args += [label, str(row), "1", value, str(row), "10", str(width), "0"]
        values = self.ask(*args)
        return values + [""] * (len(fields) - len(values))

    def tailbox(self, path: str, title: Optional[str] = None):
        args = ["--title", title] if title else []
        self.show(*args, "--tailbox", path, "25", "80")

    def gauge(self, title: str) -> Gauge:
        process = self.subprocess.Popen(
            self._command(["--gauge", title, "0", "80", "0"]),
            stdin=self.subprocess.PIPE,
            text=True,
        )
        return Gauge(process, self.logger)
