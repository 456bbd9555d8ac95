# integrations/vestaboard.py
#
# Display sinks for the 6×22 Vestaboard.
#   ConsoleSink: prints a bordered preview instead of sending (dry runs).
#   LocalSink  : POSTs to the board's Local API on the LAN (port 7000).
#   CloudSink  : POSTs to the cloud Read/Write API.
#
# Every sink takes an already-encoded grid of integer character codes (see
# message.to_codes). A POST body is the raw JSON array-of-arrays with no
# wrapper key. make_sink() picks a sink from config.toml.

from typing import Callable, Protocol

import requests

import message
from exceptions import ApiError, ConfigError
from integrations.http import fetch_with_retry

# --- API configuration ---

_CLOUD_HOST = 'https://rw.vestaboard.com/'
_LOCAL_PORT = 7000
_DEFAULT_TIMEOUT = 10


class BoardLockedError(ApiError):
  """Raised when the board returns 423 (rate-limited or quiet hours)."""


class DuplicateContentError(ApiError):
  """Raised when a POST repeats the content already on the board (HTTP 409)."""


def _check_response(r: requests.Response) -> None:
  if r.status_code == 409:
    raise DuplicateContentError(409, 'board already shows this content')
  if r.status_code == 423:
    raise BoardLockedError(423, 'board is locked (rate-limited or quiet hours)')
  if not 200 <= r.status_code < 300:
    raise ApiError(r.status_code, r.reason or '')


# --- Rendering ---
#
# Index = character code, value = console glyph. Empty string marks reserved
# code positions.
_CHAR_MAP: tuple[str, ...] = (
  ' ',  # 0   blank
  *'abcdefghijklmnopqrstuvwxyz',  # 1-26
  *'1234567890',  # 27-36
  '!',
  '@',
  '#',
  '$',
  '(',
  ')',  # 37-42
  '',
  '-',
  '',
  '+',
  '&',
  '=',
  ';',
  ':',  # 43-50
  '',
  "'",
  '"',
  '%',
  ',',
  '.',  # 51-56
  '',
  '',
  '/',
  '?',
  '',  # 57-61
  '°',  # 62
)

# Plain-text stand-ins for the colour tiles 63-71, one per colour initial.
_COLOR_DISPLAY: str = 'ROYGBVWK█'


def _display_char(code: int) -> str:
  if 0 <= code < len(_CHAR_MAP):
    return _CHAR_MAP[code] or '?'
  color_idx = code - 63
  if 0 <= color_idx < len(_COLOR_DISPLAY):
    return _COLOR_DISPLAY[color_idx]
  return '?'


def render_grid(grid: list[list[int]], title: str = '') -> str:
  """Render a character code grid as a bordered string for console output."""
  bar = '─' * (message.COLS + 2)
  lines = [title] if title else []
  lines.append(f'┌{bar}┐')
  for row in grid:
    cells = ''.join(_display_char(x) for x in row)
    lines.append(f'│ {cells} │')
  lines.append(f'└{bar}┘')
  return '\n'.join(lines)


# --- Sinks ---


class DisplaySink(Protocol):
  name: str

  def send(self, grid: list[list[int]]) -> None: ...


class ConsoleSink:
  """Prints the grid instead of sending it."""

  name = 'console'

  def __init__(self, title: str = '') -> None:
    self.title = title

  def send(self, grid: list[list[int]]) -> None:
    print(render_grid(grid, self.title))


class LocalSink:
  """Sends to the board's Local API (http://<ip>:7000/local-api/message)."""

  name = 'local'

  def __init__(self, ip_address: str, api_key: str, timeout: int = _DEFAULT_TIMEOUT) -> None:
    self.url = f'http://{ip_address}:{_LOCAL_PORT}/local-api/message'
    self.api_key = api_key
    self.timeout = timeout

  @classmethod
  def from_config(cls) -> 'LocalSink':
    import config as _config_mod

    return cls(
      _config_mod.get('vestaboard', 'ip_address'),
      _config_mod.get('vestaboard', 'local_api_key'),
      _config_mod.get_optional_int('vestaboard', 'timeout', _DEFAULT_TIMEOUT),
    )

  def send(self, grid: list[list[int]]) -> None:
    r = fetch_with_retry(
      'POST',
      self.url,
      json=grid,
      headers={'X-Vestaboard-Local-Api-Key': self.api_key, 'Content-Type': 'application/json'},
      timeout=self.timeout,
    )
    _check_response(r)


class CloudSink:
  """Sends through the cloud Read/Write API."""

  name = 'internet'

  def __init__(self, api_key: str, timeout: int = _DEFAULT_TIMEOUT) -> None:
    self.api_key = api_key
    self.timeout = timeout

  @classmethod
  def from_config(cls) -> 'CloudSink':
    import config as _config_mod

    return cls(
      _config_mod.get('vestaboard', 'api_key'),
      _config_mod.get_optional_int('vestaboard', 'timeout', _DEFAULT_TIMEOUT),
    )

  def send(self, grid: list[list[int]]) -> None:
    r = fetch_with_retry(
      'POST',
      _CLOUD_HOST,
      json=grid,
      headers={'X-Vestaboard-Read-Write-Key': self.api_key, 'Content-Type': 'application/json'},
      timeout=self.timeout,
    )
    _check_response(r)


_SINK_FACTORIES: dict[str, Callable[[], DisplaySink]] = {
  'local': LocalSink.from_config,
  'internet': CloudSink.from_config,
}


def make_sink(dry_run: bool, title: str = '') -> DisplaySink:
  """Return the console sink for dry runs, else the configured board sink.

  Raises ConfigError if the transport is unknown or its keys are missing.
  """
  if dry_run:
    return ConsoleSink(title)
  import config as _config_mod

  transport = _config_mod.get_transport()
  factory = _SINK_FACTORIES.get(transport)
  if factory is None:
    raise ConfigError('transport', f'No sink for transport {transport!r}')
  return factory()
