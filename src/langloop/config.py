# SPDX-FileCopyrightText: 2025 Mark Liffiton <liffiton@gmail.com>
#
# SPDX-License-Identifier: AGPL-3.0-only

import logging
import logging.config
import os
from dataclasses import dataclass
from typing import Any

from dotenv import load_dotenv


class MissingEnvVarError(Exception):
    def __init__(self, varname: str):
        super().__init__(f"Required environment variable not set: {varname}")


class ConfigError(Exception):
    def __init__(self, varname: str, value: str, expected: str):
        super().__init__(f"Invalid value for {varname}: {value!r} (expected {expected})")


@dataclass(frozen=True)
class Settings:
    openai_api_key: str | None = None
    model: str = "gpt-4o-mini"
    openai_base_url: str | None = None
    database: str = ":memory:"
    debounce_seconds: float = 1.5
    max_attempts: int = 50
    testing: bool = False


# environment variable -> Settings field
_ENV_VARS = {
    'OPENAI_API_KEY': 'openai_api_key',
    'LANGLOOP_MODEL': 'model',
    'LANGLOOP_OPENAI_BASE_URL': 'openai_base_url',
    'LANGLOOP_DATABASE': 'database',
    'LANGLOOP_DEBOUNCE_SECONDS': 'debounce_seconds',
    'LANGLOOP_MAX_ATTEMPTS': 'max_attempts',
    'LANGLOOP_TESTING': 'testing',
}


def _convert(varname: str, field_name: str, value: str) -> Any:
    match field_name:
        case 'debounce_seconds':
            try:
                seconds = float(value)
            except ValueError:
                raise ConfigError(varname, value, "a number of seconds") from None
            if seconds < 0:
                raise ConfigError(varname, value, "a non-negative number")
            return seconds
        case 'max_attempts':
            try:
                count = int(value)
            except ValueError:
                raise ConfigError(varname, value, "an integer") from None
            if count < 1:
                raise ConfigError(varname, value, "a positive integer")
            return count
        case 'testing':
            return value.lower() in ("yes", "true", "1")
        case 'openai_api_key' | 'openai_base_url':
            return value or None  # set-but-empty means unset
        case _:
            return value


def load_settings(overrides: dict[str, Any] | None = None) -> Settings:
    ''' Build Settings from the environment (including a .env file, if
    present), then apply any overrides (keyed by Settings field name).
    '''
    # load config values from .env file
    load_dotenv()

    values: dict[str, Any] = {}
    for varname, field_name in _ENV_VARS.items():
        if varname in os.environ:
            values[field_name] = _convert(varname, field_name, os.environ[varname])

    if overrides is not None:
        values = values | overrides

    return Settings(**values)


def init_logging(*, testing: bool) -> None:
    """ Configure logging.
    Call once at startup, before anything logs, so the configuration is not
    pre-empted by a library setting up its own basic handler.
    """
    if not testing:
        logging.config.dictConfig({
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {'default': {
                'format': '[%(asctime)s] %(levelname)s in %(module)s: %(message)s',
            }},
            'handlers': {'stream': {
                'class': 'logging.StreamHandler',
                'stream': 'ext://sys.stderr',
                'formatter': 'default'
            }},
            'root': {
                'level': 'INFO',
                'handlers': ['stream']
            },
        })
    else:
        # For testing/debugging, ensure DEBUG level logging.
        logging.getLogger().setLevel(logging.DEBUG)
        logging.getLogger('openai').setLevel(logging.INFO)  # avoid noisy debug logging from the client
        logging.getLogger('httpx').setLevel(logging.INFO)
        logging.debug("DEBUG logging enabled.")
