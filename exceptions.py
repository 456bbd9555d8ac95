# exceptions.py
#
# Shared exception types used across the runners, widgets and display sinks.
#
# Kept in a standalone module so that widgets and integrations can import
# directly without going through `vbl`, which avoids the dual-module identity
# problem that arises when vbl.py runs as __main__.


class UnsupportedCharactersError(ValueError):
  """Raised when a message contains characters the board cannot display.

  `characters` is the sorted list of offending characters so callers can
  report them without re-scanning the message.
  """

  def __init__(self, characters: list[str]) -> None:
    self.characters = characters
    super().__init__(f'Unsupported characters: {", ".join(repr(c) for c in characters)}')


class WidgetError(Exception):
  """Raised by a widget when it cannot produce content for its input."""

  def __init__(self, widget: str, message: str) -> None:
    self.widget = widget
    super().__init__(f'{widget}: {message}')


class ApiError(Exception):
  """Raised when the board API answers with a non-success status."""

  def __init__(self, status: int, message: str) -> None:
    self.status = status
    super().__init__(f'Vestaboard API error: {status} {message}'.rstrip())


class ConfigError(ValueError):
  """Raised for a missing or invalid config.toml value. `key` names it."""

  def __init__(self, key: str, message: str) -> None:
    self.key = key
    super().__init__(message)


class ValidationError(ValueError):
  """Raised when user input (interval, start index, widget input) is rejected."""


class DataFileError(Exception):
  """Raised when a playlist or schedule file exists but cannot be parsed."""

  def __init__(self, path: str, message: str) -> None:
    self.path = path
    super().__init__(f'{path}: {message}')


class LockError(Exception):
  """Raised when another live process already holds the instance lock."""


class InputError(Exception):
  """Raised when the interactive keyboard cannot be attached to stdin."""
