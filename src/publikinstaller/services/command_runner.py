"""Subprocess execution service for the Publik installer."""

import os
import subprocess
from typing import Dict, List, Optional

from publikinstaller.constants import NEUTRAL_LOCALE, PROXY_VARIABLES
from publikinstaller.errors import CommandFailure
from publikinstaller.errors_catalog import actionable_error
from publikinstaller.models import InstallSession
from publikinstaller.services.progress import Estimator, ProgressState


class CommandRunner:
    """Runs external commands behind a dialog gauge.

    Standard error is appended to ``log_file``; standard output goes through the
    estimator. Only the command's own exit status decides the outcome.
    """

    def __init__(self, logger, dialog, log_file: str, subprocess_module=subprocess):
        self.logger = logger
        self.dialog = dialog
        self.log_file = log_file
        self.subprocess = subprocess_module

    def build_command(self, cmd: List[str], session: InstallSession, as_root: bool) -> List[str]:
        if not as_root:
            return list(cmd)

        sudo = ["sudo", "-k", "-S", "-p", ""]
        if session.proxy:
            sudo.append(f"--preserve-env={','.join(PROXY_VARIABLES)}")
        return sudo + ["--"] + list(cmd)

    def build_environment(self, session: InstallSession) -> Dict[str, str]:
        env = dict(os.environ)
        if session.proxy_disabled:
            for name in PROXY_VARIABLES:
                env.pop(name, None)
                env.pop(name.upper(), None)
        env.update(NEUTRAL_LOCALE)
        env.update(session.command_environment())
        return env

    def run(
        self,
        title: str,
        estimator: Estimator,
        cmd: List[str],
        session: InstallSession,
        as_root: bool = False,
        cwd: Optional[str] = None,
    ) -> int:
        cmd_str = " ".join(cmd)
        self.logger.info("%s: %s", title, cmd_str)
        full_cmd = self.build_command(cmd, session, as_root)
        state = ProgressState()

        with open(self.log_file, "a", encoding="utf-8") as log_obj:
            try:
                process = self.subprocess.Popen(
                    full_cmd,
                    stdin=self.subprocess.PIPE if as_root else self.subprocess.DEVNULL,
                    stdout=self.subprocess.PIPE,
                    stderr=log_obj,
                    env=self.build_environment(session),
                    cwd=cwd,
                    text=True,
                    errors="replace",
                )
            except OSError as exc:
                log_obj.write(f"Failed to execute {cmd_str}: {exc}\n")
                raise CommandFailure(
                    actionable_error("missing_command", command=full_cmd[0]),
                    title=title,
                    cmd=cmd,
                ) from exc

            try:
                if as_root:
                    self._send_password(process, session.sudo_password)

                with self.dialog.gauge(title) as gauge:
                    for value in estimator(process.stdout):
                        gauge.update(state.advance(value))
                    for _ in process.stdout:
                        pass
                    if state.value < 100:
                        gauge.update(state.finish())
            except BaseException:
                self.logger.debug("Killing %s after an interrupted run", cmd_str)
                process.kill()
                process.wait()
                raise
            finally:
                process.stdout.close()

            returncode = process.wait()

        self.logger.debug("Command exited with %s: %s", returncode, cmd_str)
        if returncode != 0:
            raise CommandFailure(
                actionable_error(
                    "command_failed",
                    title=title,
                    returncode=str(returncode),
                    log_file=self.log_file,
                ),
                title=title,
                cmd=cmd,
                returncode=returncode,
            )
        return returncode

    def _send_password(self, process, password: str):
        try:
            process.stdin.write(f"{password}\n")
            process.stdin.close()
        except (BrokenPipeError, OSError) as exc:
            self.logger.debug("sudo closed its standard input early: %s", exc)
