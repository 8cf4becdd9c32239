import io
import sys

import pytest

from publikinstaller.errors import CommandFailure
from publikinstaller.models import InstallSession, ProxySettings
from publikinstaller.services.command_runner import CommandRunner
from publikinstaller.services.progress import CheckpointEstimator


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def info(self, *_args, **_kwargs):
        return None


class FakeGauge:
    def __init__(self, title, updates):
        self.title = title
        self.updates = updates

    def update(self, percent):
        self.updates.append(percent)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class FakeDialog:
    def __init__(self):
        self.titles = []
        self.updates = []

    def gauge(self, title):
        self.titles.append(title)
        return FakeGauge(title, self.updates)


class PlainRunner(CommandRunner):
    """Runs privileged commands without sudo so stdin handling can be observed."""

    def build_command(self, cmd, session, as_root):
        return list(cmd)


ESTIMATOR = CheckpointEstimator([(r"step one", 30), (r"step two", 60)])


def python_cmd(code):
    return [sys.executable, "-c", code]


def test_run_feeds_estimator_output_to_gauge_and_logs_stderr(tmp_path):
    log_file = tmp_path / "stderr.log"
    log_file.write_text("previous run\n", encoding="utf-8")
    dialog = FakeDialog()
    runner = CommandRunner(logger=DummyLogger(), dialog=dialog, log_file=str(log_file))

    returncode = runner.run(
        "Demo step",
        ESTIMATOR,
        python_cmd(
            "import sys; print('step one'); print('noise'); print('step two');"
            "sys.stderr.write('warning: demo\\n')"
        ),
        InstallSession(),
    )

    assert returncode == 0
    assert dialog.titles == ["Demo step"]
    assert dialog.updates == [30, 60, 100]
    assert log_file.read_text(encoding="utf-8") == "previous run\nwarning: demo\n"


def test_run_raises_command_failure_even_after_gauge_reached_100(tmp_path):
    log_file = tmp_path / "stderr.log"
    dialog = FakeDialog()
    runner = CommandRunner(logger=DummyLogger(), dialog=dialog, log_file=str(log_file))

    with pytest.raises(CommandFailure) as excinfo:
        runner.run(
            "Installing git",
            ESTIMATOR,
            python_cmd(
                "import sys; print('step one'); print('step two');"
                "sys.stderr.write('E: Unable to locate package\\n'); sys.exit(100)"
            ),
            InstallSession(),
        )

    assert dialog.updates[-1] == 100
    assert excinfo.value.returncode == 100
    assert excinfo.value.title == "Installing git"
    assert "stderr.log" in str(excinfo.value)
    assert "Unable to locate package" in log_file.read_text(encoding="utf-8")


def test_run_uses_neutral_locale_and_proxy_environment(tmp_path):
    dialog = FakeDialog()
    runner = CommandRunner(logger=DummyLogger(), dialog=dialog, log_file=str(tmp_path / "stderr.log"))
    session = InstallSession(proxy=ProxySettings(host="proxy.local", port="3128"))
    estimator = CheckpointEstimator(
        [(r"^C C$", 40), (r"^http://proxy.local:3128 http://proxy.local:3128$", 80)]
    )

    runner.run(
        "Environment",
        estimator,
        python_cmd(
            "import os; print(os.environ['LANG'], os.environ['LC_ALL']);"
            "print(os.environ['https_proxy'], os.environ['all_proxy'])"
        ),
        session,
    )

    assert dialog.updates == [40, 80, 100]


def test_run_as_root_sends_password_once_without_logging_it(tmp_path):
    log_file = tmp_path / "stderr.log"
    dialog = FakeDialog()
    runner = PlainRunner(logger=DummyLogger(), dialog=dialog, log_file=str(log_file))
    estimator = CheckpointEstimator([(r"^got s3cret$", 50), (r"^eof$", 90)])

    runner.run(
        "Privileged",
        estimator,
        python_cmd(
            "import sys; print('got', sys.stdin.readline().strip());"
            "print('eof' if sys.stdin.read() == '' else 'more');"
            "sys.stderr.write('done\\n')"
        ),
        InstallSession(sudo_password="s3cret"),
        as_root=True,
    )

    assert dialog.updates == [50, 90, 100]
    assert "s3cret" not in log_file.read_text(encoding="utf-8")


def test_run_reports_missing_executable_as_command_failure(tmp_path):
    runner = CommandRunner(logger=DummyLogger(), dialog=FakeDialog(), log_file=str(tmp_path / "stderr.log"))

    with pytest.raises(CommandFailure, match="Required command not found"):
        runner.run("Missing", ESTIMATOR, ["definitely-not-a-command-xyz"], InstallSession())


def test_build_command_wraps_privileged_commands_with_sudo(tmp_path):
    runner = CommandRunner(logger=DummyLogger(), dialog=FakeDialog(), log_file=str(tmp_path / "stderr.log"))

    plain = runner.build_command(["apt-get", "-y", "install", "git"], InstallSession(), as_root=True)
    proxied = runner.build_command(
        ["gem", "install", "sass"],
        InstallSession(proxy=ProxySettings(host="proxy.local")),
        as_root=True,
    )

    assert plain == ["sudo", "-k", "-S", "-p", "", "--", "apt-get", "-y", "install", "git"]
    assert "--preserve-env=http_proxy,https_proxy,all_proxy" in proxied
    assert runner.build_command(["git", "clone"], InstallSession(), as_root=False) == ["git", "clone"]


def recording_estimator(seen):
    def estimator(lines):
        for line in lines:
            seen.append(line.strip())
        yield 40

    return estimator


def test_run_completes_gauge_when_estimator_stops_short(tmp_path):
    dialog = FakeDialog()
    runner = CommandRunner(logger=DummyLogger(), dialog=dialog, log_file=str(tmp_path / "stderr.log"))

    runner.run("Short", recording_estimator([]), python_cmd("print('partial')"), InstallSession())

    assert dialog.updates == [40, 100]


def test_run_drops_inherited_proxy_when_operator_disabled_it(tmp_path, monkeypatch):
    monkeypatch.setenv("http_proxy", "http://old-proxy:3128")
    monkeypatch.setenv("HTTPS_PROXY", "http://old-proxy:3128")
    seen = []
    runner = CommandRunner(logger=DummyLogger(), dialog=FakeDialog(), log_file=str(tmp_path / "stderr.log"))

    runner.run(
        "No proxy",
        recording_estimator(seen),
        python_cmd(
            "import os; print(os.environ.get('http_proxy', 'unset'),"
            " os.environ.get('HTTPS_PROXY', 'unset'))"
        ),
        InstallSession(proxy_disabled=True),
    )

    assert seen == ["unset unset"]


def test_run_keeps_inherited_proxy_without_proxy_prompt(tmp_path, monkeypatch):
    monkeypatch.setenv("https_proxy", "http://site-proxy:3128")
    seen = []
    runner = CommandRunner(logger=DummyLogger(), dialog=FakeDialog(), log_file=str(tmp_path / "stderr.log"))

    runner.run(
        "Inherited",
        recording_estimator(seen),
        python_cmd("import os; print(os.environ.get('https_proxy', 'unset'))"),
        InstallSession(),
    )

    assert seen == ["http://site-proxy:3128"]


class FakeProcess:
    def __init__(self):
        self.stdin = io.StringIO()
        self.stdout = io.StringIO("first line\nsecond line\n")
        self.killed = False
        self.waited = False

    def kill(self):
        self.killed = True

    def wait(self):
        self.waited = True
        return -9


class FakeSubprocessModule:
    PIPE = -1
    DEVNULL = -3

    def __init__(self):
        self.processes = []

    def Popen(self, *_args, **_kwargs):
        process = FakeProcess()
        self.processes.append(process)
        return process


def test_run_kills_child_when_estimator_raises(tmp_path):
    subprocess_module = FakeSubprocessModule()
    runner = CommandRunner(
        logger=DummyLogger(),
        dialog=FakeDialog(),
        log_file=str(tmp_path / "stderr.log"),
        subprocess_module=subprocess_module,
    )

    def broken_estimator(lines):
        next(iter(lines))
        raise ValueError("bad pattern table")
        yield 0

    with pytest.raises(ValueError, match="bad pattern table"):
        runner.run("Broken", broken_estimator, ["apt-get", "install", "git"], InstallSession())

    process = subprocess_module.processes[0]
    assert process.killed
    assert process.waited
    assert process.stdout.closed


def test_run_kills_child_when_gauge_cannot_start(tmp_path):
    class BrokenDialog:
        def gauge(self, _title):
            raise OSError("dialog vanished")

    subprocess_module = FakeSubprocessModule()
    runner = CommandRunner(
        logger=DummyLogger(),
        dialog=BrokenDialog(),
        log_file=str(tmp_path / "stderr.log"),
        subprocess_module=subprocess_module,
    )

    with pytest.raises(OSError, match="dialog vanished"):
        runner.run("Broken", ESTIMATOR, ["git", "clone"], InstallSession())

    assert subprocess_module.processes[0].killed
    assert subprocess_module.processes[0].waited
