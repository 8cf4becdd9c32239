import logging
import os
from typing import Any, Dict, List, Optional

import requests
from rich.console import Console

from .constants import (
    COMBO_REPOSITORY,
    COMBO_SETTINGS_FILE,
    DEFAULT_APT_PACKAGES,
    DEFAULT_DIRECTORY,
    DEFAULT_ERROR_LOG,
    EXIT_USER_CANCELLED,
    GET_PIP_URL,
    WCS_REPOSITORY,
)
from .errors import (
    CommandFailure,
    DirectoryConflict,
    InstallerError,
    PrerequisiteMissing,
    UserCancelled,
)
from .models import InstallSession, RepositorySpec
from .services.command_runner import CommandRunner
from .services.dependencies import MigrationDiscoverer, RequirementDiscoverer
from .services.dialog import DialogService
from .services.download import DownloadService
from .services.filesystem import FileSystemService
from .services.progress import (
    apt_progression,
    gem_sass_progression,
    get_pip_progression,
    git_progression,
    migrations_progression,
    pip_progression,
    requirements_progression,
    virtualenv_progression,
)
from .services.prompts import PromptFlow
from .services.validation import ValidationService

console = Console()
logger = logging.getLogger("publikinstaller")

INTRODUCTION = (
    "This script installs a Publik development environment:\n\n"
    " - Git, VirtualEnv, Python headers, Ruby and Sass (requires sudo)\n"
    " - a Python virtual environment\n"
    " - Combo and w.c.s. with their Python requirements\n\n"
    "Continue?"
)


class PublikInstaller:
    def __init__(
        self,
        directory: str = DEFAULT_DIRECTORY,
        static_root: Optional[str] = None,
        migrate: bool = False,
        introduction: bool = True,
        error_log: str = DEFAULT_ERROR_LOG,
        combo_repository: Optional[Dict[str, str]] = None,
        wcs_repository: Optional[Dict[str, str]] = None,
        apt_packages: Optional[List[List[str]]] = None,
        get_pip_url: str = GET_PIP_URL,
        settings_file: str = COMBO_SETTINGS_FILE,
        proxy_signal: Optional[str] = None,
    ):
        self.directory = directory
        self.static_root = static_root
        self.migrate = migrate
        self.introduction = introduction
        self.error_log = os.path.abspath(error_log)
        self.combo = RepositorySpec(**(combo_repository or COMBO_REPOSITORY))
        self.wcs = RepositorySpec(**(wcs_repository or WCS_REPOSITORY))
        self.apt_packages = apt_packages if apt_packages is not None else DEFAULT_APT_PACKAGES
        self.get_pip_url = get_pip_url
        self.settings_file = settings_file
        self.proxy_signal = proxy_signal
        self.current_step_name: Optional[str] = None

        self.dialog = DialogService(logger=logger)
        self.validation_service = ValidationService(logger=logger)
        self.prompt_flow = PromptFlow(dialog=self.dialog, logger=logger)
        self.command_runner = CommandRunner(
            logger=logger,
            dialog=self.dialog,
            log_file=self.error_log,
        )
        self.download_service = DownloadService(
            logger=logger,
            dialog=self.dialog,
            requests_module=requests,
        )
        self.filesystem_service = FileSystemService(logger=logger)
        self.requirement_discoverer = RequirementDiscoverer(logger=logger)
        self.migration_discoverer = MigrationDiscoverer(logger=logger)

    def _run_step(self, name: str, callback, *args, **kwargs) -> Any:
        logger.debug("Step started: %s", name)
        self.current_step_name = name
        result = callback(*args, **kwargs)
        self.current_step_name = None
        logger.debug("Step finished: %s", name)
        return result

    def _run(self, session: InstallSession, title: str, estimator, cmd: List[str], **kwargs):
        return self.command_runner.run(title, estimator, cmd, session, **kwargs)

    @staticmethod
    def environment_dir(session: InstallSession) -> str:
        return os.path.abspath(session.directory)

    def repository_dir(self, session: InstallSession, repository: RepositorySpec) -> str:
        return os.path.join(self.environment_dir(session), repository.name)

    def executable(self, session: InstallSession, name: str) -> str:
        return os.path.join(self.environment_dir(session), "bin", name)

    def check_requirements(self):
        self.validation_service.check_prerequisites()

    def introduce(self):
        if self.introduction:
            self.dialog.yesno(INTRODUCTION)

    def collect_session(self, session: InstallSession):
        self.prompt_flow.run(session, self.proxy_signal)

    def install_system_packages(self, session: InstallSession):
        for packages in self.apt_packages:
            self._run(
                session,
                f"Installing {' '.join(packages)}",
                apt_progression,
                ["apt-get", "-y", "install", *packages],
                as_root=True,
            )

    def install_sass(self, session: InstallSession):
        self._run(
            session,
            "Installing Sass",
            gem_sass_progression,
            ["gem", "install", "sass"],
            as_root=True,
        )

    def create_environment(self, session: InstallSession):
        self._run(
            session,
            f"Creating virtual environment in {session.directory}",
            virtualenv_progression,
            ["virtualenv", self.environment_dir(session)],
        )

    def bootstrap_pip(self, session: InstallSession):
        script = os.path.join(self.environment_dir(session), "get-pip.py")
        self.download_service.download_file(
            self.get_pip_url,
            script,
            "Downloading get-pip.py",
            proxies=session.request_proxies(),
        )
        self._run(
            session,
            "Retrieving a current version of pip",
            get_pip_progression,
            [self.executable(session, "python"), script],
            cwd=self.environment_dir(session),
        )

    def clone_repository(self, session: InstallSession, repository: RepositorySpec):
        self._run(
            session,
            f"Cloning {repository.name} repository in {session.directory}/{repository.name}",
            git_progression,
            ["git", "clone", repository.url, repository.name],
            cwd=self.environment_dir(session),
        )

    def install_requirements(self, session: InstallSession, repository: RepositorySpec):
        project_dir = self.repository_dir(session, repository)
        requirements = self.requirement_discoverer.discover(project_dir)
        estimator = requirements_progression(requirements) if requirements else pip_progression
        self._run(
            session,
            f"Installing {repository.name} requirements",
            estimator,
            [self.executable(session, "pip"), "install", "-e", "."],
            cwd=project_dir,
        )

    def configure_static_root(self, session: InstallSession):
        static_root = os.path.abspath(session.static_root)
        settings_path = os.path.join(self.repository_dir(session, self.combo), self.settings_file)
        if not os.path.isfile(settings_path):
            raise InstallerError(f"Settings file not found: {settings_path}")
        self.filesystem_service.append_line(settings_path, f"STATIC_ROOT = {static_root!r}")

    def migrate_database(self, session: InstallSession):
        project_dir = self.repository_dir(session, self.combo)
        shared_dirs = self.filesystem_service.site_package_dirs(
            self.environment_dir(session), "django"
        )
        migrations = self.migration_discoverer.discover(project_dir, shared_dirs)
        self._run(
            session,
            f"Migrating the {self.combo.name} database",
            migrations_progression(migrations),
            [self.executable(session, "python"), "manage.py", "migrate", "--noinput"],
            cwd=project_dir,
        )

    def install(self, session: InstallSession):
        self._run_step("install_system_packages", self.install_system_packages, session)
        self._run_step("install_sass", self.install_sass, session)
        self._run_step("create_environment", self.create_environment, session)
        self._run_step("bootstrap_pip", self.bootstrap_pip, session)
        for repository in (self.combo, self.wcs):
            self._run_step(f"clone_{repository.name}", self.clone_repository, session, repository)
            self._run_step(
                f"install_{repository.name}_requirements",
                self.install_requirements,
                session,
                repository,
            )
        if session.static_root:
            self._run_step("configure_static_root", self.configure_static_root, session)
        if self.migrate:
            self._run_step("migrate_database", self.migrate_database, session)

    def run(self) -> int:
        session = InstallSession(directory=self.directory, static_root=self.static_root)

        try:
            logger.info("Starting Publik installation...")
            self._run_step("check_requirements", self.check_requirements)
            self._run_step("introduce", self.introduce)
            self._run_step("collect_session", self.collect_session, session)
            self.install(session)
            self.dialog.msgbox(f"Publik is installed in {session.directory}", height=6, width=60)
            logger.info("Publik installed in %s", self.environment_dir(session))
            return 0

        except PrerequisiteMissing as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            return exc.exit_code
        except (UserCancelled, DirectoryConflict) as exc:
            logger.info(str(exc))
            return exc.exit_code
        except CommandFailure as exc:
            logger.error("Step %s failed: %s", self.current_step_name or "run", exc)
            self.dialog.tailbox(self.error_log, title=exc.title)
            return exc.exit_code
        except InstallerError as exc:
            logger.error(str(exc))
            self.dialog.msgbox(str(exc), height=10, width=70)
            return exc.exit_code
        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            return EXIT_USER_CANCELLED
