import logging
import os
from sys import stderr

from typing import Any, Callable, Optional, Set

__reported_keys: Set[str] = set()

# This logger only reports how the environment variables are resolved. Everything else should use "get_logger".
__log_level = logging.DEBUG if str(os.getenv('MQCLOUD_DEBUG') or '').lower() in ['1', 'true'] else logging.INFO
__log_handler = logging.StreamHandler(stderr)
__log_handler.setLevel(__log_level)
__log_handler.setFormatter(logging.Formatter('[ %(asctime)s | %(levelname)s ] %(name)s: %(message)s'))

__env_logger = logging.Logger('environment', level=__log_level)
__env_logger.addHandler(__log_handler)


def __boolean_flag(v: str) -> bool:
    return str(v or '').lower() in ['1', 'true', 'yes']


class EnvironmentVariableRequired(RuntimeError):
    def __init__(self, key: str, hint: Optional[str] = None):
        feedback = f'Environment variable required: {key}'

        if hint:
            feedback += f' ({hint})'

        super(EnvironmentVariableRequired, self).__init__(feedback)


def env(key: str,
        default: Any = None,
        required: bool = False,
        transform: Optional[Callable[[str], Any]] = None,
        hint: Optional[str] = None,
        description: Optional[str] = None) -> Any:
    """ Read an environment variable, optionally transforming the raw string """
    raw_value = os.getenv(key)

    if raw_value is None and required:
        __env_logger.error(f'Missing environment variable "{key}" ({description})')
        raise EnvironmentVariableRequired(key, hint)

    value = default if raw_value is None else (transform(raw_value) if transform else raw_value)

    if key not in __reported_keys:
        __reported_keys.add(key)
        __env_logger.debug(f'ENV "{key}"' + (f' ({description})' if description else '') + f' → {value!r}')

    return value


def flag(key: str, description: Optional[str] = None) -> bool:
    return bool(env(key, default=False, transform=__boolean_flag, description=description))
