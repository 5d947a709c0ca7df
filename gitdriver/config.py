"""Configuration for the git executable, default remote and command tracing"""

import configparser
import logging
import os
import platform
from typing import Optional, Any

from pathlib import Path

from gitdriver.constants import DEFAULT_REMOTE_NAME

APP_NAME = "gitdriver"

logger = logging.getLogger(__name__)

_home = os.path.expanduser("~")

xdg_config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.join(_home, ".config")


default_cfg = {
    "git": {
        "executable": "git",
        "default_remote": DEFAULT_REMOTE_NAME,
        "verbose": "false",
    }
}

if platform.system() == "Darwin":
    # macOS
    config_dir = Path("~/Library/Application Support/gitdriver").expanduser()
else:
    # Linux or others
    config_dir = Path(os.path.join(xdg_config_home, APP_NAME))


def get_config_file():
    return config_dir / f"{APP_NAME}.cfg"


def init_dirs():
    """Initialize the configuration directory.

    Fails gracefully if the directory cannot be created (e.g., read-only filesystem).
    """
    try:
        os.makedirs(config_dir, exist_ok=True)
    except OSError as e:
        logger.warning(
            f"Could not create config directory {config_dir}: {e}. "
            "Using in-memory configuration only."
        )


class ConfigAccessor:
    """
    A dict-like accessor for configuration files.

    Missing sections or keys are handled gracefully.

    Usage:
        config = ConfigAccessor()
        value = config.get('git', 'executable', default='git')
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize a ConfigAccessor with an optional config file path.

        Args:
            config_path: Path to the configuration file. If None, uses the default path.
        """
        if config_path is None:
            self.config_path = get_config_file()
            init_dirs()
        else:
            self.config_path = config_path

        self.config = configparser.ConfigParser()
        if self.config_path.exists():
            self.config.read(self.config_path)

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get a configuration value from the specified section and key.

        Args:
            section: The configuration section
            key: The configuration key
            default: Value to return if the section or key doesn't exist

        Returns:
            The configuration value if it exists, otherwise the default value
        """
        try:
            return self.config[section][key]
        except (KeyError, configparser.NoSectionError, configparser.NoOptionError):
            return default

    def getboolean(self, section: str, key: str, default: bool = False) -> bool:
        """Get a boolean value; unparseable values fall back to the default."""
        try:
            return self.config.getboolean(section, key, fallback=default)
        except ValueError:
            logger.warning(
                f"Invalid boolean for [{section}] {key} in {self.config_path}, "
                f"using {default}"
            )
            return default


# Create a global config accessor instance
config = ConfigAccessor()


def get_git_executable() -> str:
    """
    Get the git executable used for command-line operations.

    The GITDRIVER_GIT_EXE environment variable takes precedence over the
    config file.

    Returns:
        Path or name of the git executable (defaults to "git")
    """
    from_env = os.environ.get("GITDRIVER_GIT_EXE")
    if from_env:
        return from_env
    return config.get("git", "executable", default_cfg["git"]["executable"])


def get_default_remote_name() -> str:
    """Get the remote preferred when several are configured (defaults to "origin")."""
    return config.get("git", "default_remote", default_cfg["git"]["default_remote"])


def is_verbose() -> bool:
    """Whether every git command line should be logged."""
    return config.getboolean("git", "verbose", default=False)
