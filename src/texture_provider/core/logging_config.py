import logging
import os
import sys

DEFAULT_LOG_LEVEL = logging.WARNING
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVEL_ENV_VAR = "TEXTURE_PROVIDER_LOG_LEVEL"


def _resolve_level(level: int | str | None) -> int:
    """Turn a level argument (or the environment) into a logging level number."""
    if isinstance(level, int):
        return level

    if level is None:
        level_name = os.environ.get(LOG_LEVEL_ENV_VAR, "").upper()
        source = LOG_LEVEL_ENV_VAR
    else:
        level_name = level.upper()
        source = "log level string"

    if level_name and isinstance(getattr(logging, level_name, None), int):
        return getattr(logging, level_name)

    if level_name:
        # Logging is not configured yet, so this has to go straight to stderr.
        print(  # noqa: T201
            f"Warning: Invalid {source} '{level_name}'. Defaulting to {logging.getLevelName(DEFAULT_LOG_LEVEL)}.",
            file=sys.stderr,
        )
    return DEFAULT_LOG_LEVEL


def setup_logging(level: int | str | None = None) -> None:
    """
    Set up logging for the texture provider.

    Args:
        level: The logging level to set. Can be an integer (e.g., logging.INFO),
               a string (e.g., "INFO"), or None. If None, the level is read from
               the TEXTURE_PROVIDER_LOG_LEVEL environment variable, defaulting
               to DEFAULT_LOG_LEVEL.

    """
    log_level = _resolve_level(level)

    app_logger = logging.getLogger("texture_provider")
    app_logger.setLevel(log_level)

    # Replace handlers so the new one picks up the current sys.stderr
    # (CliRunner swaps the streams between invocations).
    for old_handler in list(app_logger.handlers):
        app_logger.removeHandler(old_handler)
        old_handler.close()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    app_logger.addHandler(handler)
