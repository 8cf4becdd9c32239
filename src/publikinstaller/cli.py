import logging
import os

import click
from rich.logging import RichHandler

from .constants import (
    COMBO_SETTINGS_FILE,
    DEFAULT_CONFIG_FILE,
    DEFAULT_DIRECTORY,
    DEFAULT_ERROR_LOG,
    GET_PIP_URL,
)
from .core import PublikInstaller
from .errors import InstallerError
from .services.config_loader import ConfigLoader


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


# Console output stays at WARNING while dialog draws the screen.
console_handler = RichHandler(
    level=logging.WARNING, rich_tracebacks=True, show_level=False, show_path=False
)

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[console_handler],
)


@click.command()
@click.argument("static_root", required=False, type=click.Path(file_okay=False))
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to an installer log file")
def main(static_root, config, verbose, log_file):
    """Install a Publik development environment (Combo and w.c.s.).

    STATIC_ROOT, when given, is written as STATIC_ROOT in the Combo settings.
    """
    logger = logging.getLogger("publikinstaller")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
    except InstallerError as exc:
        raise click.ClickException(str(exc)) from exc

    static_root = _resolve_option(static_root, config_values, "static_root")
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        console_handler.setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    try:
        installer = PublikInstaller(
            directory=config_values.get("directory", DEFAULT_DIRECTORY),
            static_root=static_root,
            migrate=bool(config_values.get("migrate", False)),
            introduction=bool(config_values.get("introduction", True)),
            error_log=config_values.get("error_log", DEFAULT_ERROR_LOG),
            combo_repository=config_values.get("combo_repository"),
            wcs_repository=config_values.get("wcs_repository"),
            apt_packages=config_values.get("apt_packages"),
            get_pip_url=config_values.get("get_pip_url", GET_PIP_URL),
            settings_file=config_values.get("settings_file", COMBO_SETTINGS_FILE),
            proxy_signal=os.environ.get("http_proxy"),
        )
    except InstallerError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(installer.run())


if __name__ == "__main__":
    main()
