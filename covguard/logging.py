"""Logging for a CI step: level and format from config, secrets masked.

Levels (inclusive):
- ERROR: failed reporting cycles
- WARNING: retries, skipped comments, failed status pushes, and ERROR
- INFO: decisions taken (create/update/skip, blocking), WARNING, and ERROR
- DEBUG: per-comment classification and all levels above

CI logs are often public, so the GitHub token is replaced with ``***`` in
every record that reaches the handler, including exception text from
requests. HTTP library loggers stay at WARNING unless covguard runs at
DEBUG.

Configure via config.yaml (logging.level, logging.format) or env (LOGGING_LEVEL, LOGGING_FORMAT).
"""

import logging
from typing import Iterable

from covguard.config import LoggingConfig

# Supported levels only (DEBUG, INFO, WARNING, ERROR)
LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
HTTP_LOGGERS = ("urllib3", "requests")
MASK = "***"


def _resolve_level(level: str) -> int:
    """Map level name to logging constant. Unknown names give INFO."""
    return LEVELS.get(level.upper().strip(), logging.INFO)


class SecretMaskingFilter(logging.Filter):
    """Replaces known secrets in the rendered message and traceback text."""

    def __init__(self, secrets: Iterable[str | None] = ()) -> None:
        super().__init__()
        # Longest first so a secret containing another is masked whole.
        self._secrets = sorted({s for s in secrets if s}, key=len, reverse=True)

    def mask(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, MASK)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        record.msg = self.mask(record.getMessage())
        record.args = None
        if record.exc_info and not record.exc_text:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = self.mask(record.exc_text)
        return True


class CovguardLogging:
    """Configures the root logger from LoggingConfig (YAML + env LOGGING_*)."""

    def __init__(self, config: LoggingConfig, secrets: Iterable[str | None] = ()) -> None:
        self._level = _resolve_level(config.level)
        self._format = config.format or DEFAULT_FORMAT
        self._filter = SecretMaskingFilter(secrets)

    @property
    def level(self) -> int:
        return self._level

    def setup(self) -> None:
        """Replace root handlers, attach the masking filter, tune HTTP loggers."""
        logging.basicConfig(
            level=self._level,
            format=self._format,
            force=True,
        )
        for handler in logging.root.handlers:
            handler.addFilter(self._filter)

        # urllib3 logs every connection at DEBUG, with the request line.
        http_level = logging.INFO if self._level == logging.DEBUG else max(self._level, logging.WARNING)
        for name in HTTP_LOGGERS:
            logging.getLogger(name).setLevel(http_level)
