"""
Configuration
Environment-backed settings and per-client options.
"""

import os
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Mapping, Optional, Union

from dotenv import load_dotenv

from . import __version__

load_dotenv()

DEFAULT_CALLBACK_URL = 'oob'
DEFAULT_API_BASE = 'api.twitter.com'
DEFAULT_API_VERSION = '1'
DEFAULT_USER_AGENT = f'twit-client/{__version__}'


def _parse_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes')
    return bool(value)


def _env_flag(name: str, default: str) -> bool:
    return _parse_flag(os.getenv(name, default))


class Config:
    TWIT_CONSUMER_KEY = os.getenv('TWIT_CONSUMER_KEY')
    TWIT_CONSUMER_SECRET = os.getenv('TWIT_CONSUMER_SECRET')
    TWIT_ACCESS_TOKEN = os.getenv('TWIT_ACCESS_TOKEN')
    TWIT_ACCESS_SECRET = os.getenv('TWIT_ACCESS_SECRET')

    TWIT_CALLBACK_URL = os.getenv('TWIT_CALLBACK_URL', DEFAULT_CALLBACK_URL)
    TWIT_API_BASE = os.getenv('TWIT_API_BASE', DEFAULT_API_BASE)
    TWIT_USE_SSL = _env_flag('TWIT_USE_SSL', 'true')
    TWIT_DEBUG = _env_flag('TWIT_DEBUG', 'false')

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


@dataclass(frozen=True)
class ClientOptions:
    """Construction options for TwitClient.

    Attributes:
        callback_url: Where the service redirects after authorization.
            'oob' selects the out-of-band (PIN) flow.
        api_base: Host name of the API. Point this at a clone of the API
            instead of the real service if needed.
        use_ssl: Talk HTTPS rather than HTTP.
        user_agent: User-Agent header sent with every request.
        api_version: Path prefix of the REST endpoints.
        debug: Enable the client's debug log.
        logging_function: Receives debug log messages instead of the
            'twit' logger.
    """

    callback_url: str = DEFAULT_CALLBACK_URL
    api_base: str = DEFAULT_API_BASE
    use_ssl: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    api_version: str = DEFAULT_API_VERSION
    debug: bool = False
    logging_function: Optional[Callable[[Any], None]] = None

    @classmethod
    def build(cls, options: Union['ClientOptions', Mapping[str, Any], None] = None,
              **overrides) -> 'ClientOptions':
        """Merge an options object or mapping with keyword overrides.

        Unknown option names are ignored. Empty values fall back to the
        defaults, except for the boolean flags, which only fall back when None.
        String flags are read like the environment: '1', 'true' or 'yes'.
        """
        if isinstance(options, ClientOptions):
            base = options
            values = {}
        else:
            base = cls()
            values = dict(options or {})
        values.update(overrides)

        known = {f.name for f in fields(cls)}
        changes = {}
        for name, value in values.items():
            if name not in known:
                continue
            if name in ('use_ssl', 'debug'):
                if value is not None:
                    changes[name] = _parse_flag(value)
            elif name == 'logging_function':
                changes[name] = value if callable(value) else None
            elif value:
                changes[name] = str(value)
        return replace(base, **changes)

    @classmethod
    def from_env(cls) -> 'ClientOptions':
        return cls(
            callback_url=Config.TWIT_CALLBACK_URL,
            api_base=Config.TWIT_API_BASE,
            use_ssl=Config.TWIT_USE_SSL,
            debug=Config.TWIT_DEBUG,
        )
