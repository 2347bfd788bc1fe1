"""
Logging installation for navarch and the command modules built on it.

Modules log through logging.getLogger(__name__); nothing is printed until a
host calls install(). The verbosity follows the count-style convention of
command lines (`-v -v` minus `-q`): 0 shows warnings, 1 info, 2 and above
debug. The installed level is also what report() uses to decide whether a
traceback is worth printing.
"""
import logging

from rich.console import Console
from rich.logging import RichHandler

_verbosity = 0


def verbosity():
    """
    return the verbosity installed by the last install() call (0 by default).
    """
    return _verbosity


def install(level=0, /, *, console=None):
    """
    route the "navarch" logger tree through a rich handler on stderr.

    calling install() again replaces the previous handler, so a host can
    raise the level after the first parse has read its verbosity flags.
    """
    global _verbosity

    if not isinstance(level, int):
        raise TypeError("install() argument must be an integer")
    _verbosity = level

    logger = logging.getLogger("navarch")
    for handler in [*logger.handlers]:
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=level > 1,
        rich_tracebacks=True,
    )
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if level > 1 else logging.INFO if level == 1 else logging.WARNING)
    logger.propagate = False
    return logger


__all__ = (
    "install",
    "verbosity",
)
