import logging
import sys

from rich.console import Console
from rich.logging import RichHandler


class Log:
    """Centralized logging for the client, its monitor and the CLI view."""

    _logger: logging.Logger = logging.getLogger("labelcheck")

    @classmethod
    def configure(cls, log_level: str, console: Console | None = None) -> None:
        """Configure the level and install a single handler.

        With a rich console the records are routed through it, so they render
        above a live progress display instead of tearing it. Without one they
        go to stderr in plain format.
        """
        cls._logger.setLevel(log_level.upper())
        if cls._logger.handlers:
            return
        if console is not None:
            handler: logging.Handler = RichHandler(
                console=console, show_path=False, markup=False
            )
            handler.setFormatter(logging.Formatter("%(message)s"))
        else:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(
                logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
            )
        cls._logger.addHandler(handler)

    @classmethod
    def reset(cls) -> None:
        """Drop installed handlers (used when the CLI reconfigures per command)."""
        for handler in list(cls._logger.handlers):
            cls._logger.removeHandler(handler)

    @classmethod
    def info(cls, message: str, **kwargs: object) -> None:
        cls._logger.info(message, extra=kwargs)

    @classmethod
    def error(cls, message: str, **kwargs: object) -> None:
        cls._logger.error(message, extra=kwargs)

    @classmethod
    def warning(cls, message: str, **kwargs: object) -> None:
        cls._logger.warning(message, extra=kwargs)

    @classmethod
    def debug(cls, message: str, **kwargs: object) -> None:
        cls._logger.debug(message, extra=kwargs)
