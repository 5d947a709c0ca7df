import logging
import sys


logger = logging.getLogger("gitdriver")

# GitPython logs every command it spawns under these names
GITPYTHON_LOGGERS = ("git.cmd", "git.repo.base", "git.remote")


def configure_logging(debug: bool):
    """
    Configures the gitdriver logger and GitPython's loggers.

    Progress lines are printed as plain messages. In debug mode the logger
    name is shown, so runner lines stand out from remediation lines.
    GitPython stays at WARNING unless debugging.
    """
    if debug:
        formatter = logging.Formatter("%(levelname)s %(name)s: %(message)s")
    else:
        formatter = logging.Formatter("%(message)s")

    log_level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(log_level)

    if not logger.hasHandlers():
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    else:
        for handler in logger.handlers:
            handler.setFormatter(formatter)

    for name in GITPYTHON_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)
