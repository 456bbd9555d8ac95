# config.py
#
# TOML configuration loader.
#
# Call load_config() once at startup (e.g. from main()). All other functions
# read from the module-level cache and may be called from any thread.
#
# Unlike a long-running service, vbl is usable without any config at all:
# dry runs render to the console and the data files fall back to their
# default locations under data/. Only real board sends need [vestaboard].
#
# Modules import config inside their functions so they can be imported in
# tests without a real config file present.

import tomllib
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from exceptions import ConfigError

_CONFIG_PATH = Path('config.toml')
_EXAMPLE_PATH = Path('config.example.toml')

_config: dict = {}

# Default locations of the data files, relative to the working directory.
_DEFAULT_PATHS: dict[str, str] = {
  'playlist': 'data/playlist.json',
  'schedule': 'data/schedule.json',
  'runtime_state': 'data/runtime_state.json',
  'lock': 'data/vestaboard.lock',
}

_TRANSPORTS: tuple[str, ...] = ('local', 'internet')

_DEFAULT_RELOAD_INTERVAL = 3  # seconds between schedule file mtime checks


def load_config() -> None:
  """Load config.toml from the current working directory.

  A missing file leaves the cache empty so every accessor returns its
  default. Lets tomllib.TOMLDecodeError propagate on parse errors.
  """
  global _config
  if not _CONFIG_PATH.exists():
    _config = {}
    return
  with open(_CONFIG_PATH, 'rb') as f:
    _config = tomllib.load(f)


def get(section: str, key: str) -> str:
  """Return a required string config value.

  Raises ConfigError with a descriptive message if the section or key is
  missing, or if the value is an empty string.
  """
  value = _config.get(section, {}).get(key)
  if not value:
    raise ConfigError(
      key,
      f'Missing required config key [{section}].{key} in config.toml (see {_EXAMPLE_PATH})',
    )
  return str(value)


def get_optional(section: str, key: str, default: str = '') -> str:
  """Return an optional string config value, or default if absent."""
  value = _config.get(section, {}).get(key)
  if value is None:
    return default
  return str(value)


def get_optional_int(section: str, key: str, default: int) -> int:
  """Return an optional integer config value, or default if absent.

  Raises ConfigError if the value is present but not an integer.
  """
  value = _config.get(section, {}).get(key)
  if value is None:
    return default
  try:
    return int(value)
  except (TypeError, ValueError):
    raise ConfigError(key, f'[{section}].{key} must be an integer, got {value!r}') from None


def get_timezone() -> ZoneInfo | None:
  """Return the configured timezone, or None to use the system local timezone.

  Reads [scheduler].timezone from config.toml. When absent or empty, returns
  None, which causes datetime.astimezone(None) to fall back to the system
  local timezone (i.e. whatever TZ is set to in the environment).

  Raises ValueError with a clear message if the timezone name is invalid.
  """
  tz_name = get_optional('scheduler', 'timezone')
  if not tz_name:
    return None
  try:
    return ZoneInfo(tz_name)
  except ZoneInfoNotFoundError:
    raise ValueError(
      f'Unknown timezone {tz_name!r} in [scheduler].timezone; '
      'use an IANA name such as "America/Los_Angeles" or "Europe/London"'
    ) from None


def get_transport() -> str:
  """Return the configured board transport: 'local' (default) or 'internet'.

  Reads [vestaboard].transport. Raises ConfigError for any other value.
  """
  value = get_optional('vestaboard', 'transport', 'local')
  if value not in _TRANSPORTS:
    raise ConfigError('transport', f"Unknown transport {value!r} in [vestaboard].transport; use 'local' or 'internet'")
  return value


def get_path(name: str) -> Path:
  """Return the path of a data file from [files], falling back to data/.

  `name` is one of 'playlist', 'schedule', 'runtime_state' or 'lock'.
  """
  if name not in _DEFAULT_PATHS:
    raise ValueError(f'Unknown data file: {name!r}')
  return Path(get_optional('files', name, _DEFAULT_PATHS[name]))


def get_reload_interval() -> int:
  """Return how often (seconds) a running schedule checks its file for edits."""
  return max(0, get_optional_int('scheduler', 'reload_interval', _DEFAULT_RELOAD_INTERVAL))
