# runner/common.py
#
# Pieces shared by the playlist and schedule runners: the loop control
# signal, key parsing, help text, and execute_and_send(), which turns one
# widget item into a board update.
#
# execute_and_send() never raises. A widget that fails, or content the board
# cannot display, is replaced by an error screen; a sink that fails is
# reported and the runner moves on.

from datetime import datetime
from enum import Enum
from typing import Any, Protocol

import message
from integrations.vestaboard import DisplaySink, DuplicateContentError
from widgets.resolver import execute_widget


class ControlFlow(Enum):
  CONTINUE = 'continue'
  EXIT = 'exit'


class Key(Enum):
  QUIT = 'quit'
  PAUSE = 'pause'
  RESUME = 'resume'
  NEXT = 'next'
  HELP = 'help'


_KEYS: dict[str, Key] = {
  'q': Key.QUIT,
  'Q': Key.QUIT,
  'p': Key.PAUSE,
  'P': Key.PAUSE,
  'r': Key.RESUME,
  'R': Key.RESUME,
  'n': Key.NEXT,
  'N': Key.NEXT,
  '?': Key.HELP,
}


def parse_key(ch: str) -> Key | None:
  """Return the control key for a typed character, or None to ignore it."""
  return _KEYS.get(ch)


PLAYLIST_HELP = """Playlist Controls:
  p - Pause rotation
  r - Resume rotation
  n - Show next item now
  q - Quit
  ? - Show this help"""

SCHEDULE_HELP = """Schedule Controls:
  q - Quit
  ? - Show this help"""


class Runner(Protocol):
  """What the control loop drives. Both engines implement it."""

  help_text: str

  def start(self) -> None: ...

  def tick(self) -> ControlFlow: ...

  def handle_key(self, ch: str) -> ControlFlow: ...

  def cleanup(self) -> None: ...


def timestamp() -> str:
  return datetime.now().strftime('%H:%M:%S')


def render_rows(widget: str, input: Any) -> list[str]:
  """Run a widget, substituting an error screen for any failure."""
  try:
    rows = execute_widget(widget, input)
    message.validate_rows(rows)
  except Exception as e:  # noqa: BLE001
    print(f'[{timestamp()}] Error rendering {widget}: {e}')
    return message.error_to_display_message(e)
  return rows


def send_rows(rows: list[str], sink: DisplaySink) -> bool:
  """Encode rows and hand them to sink. Returns False if the send failed."""
  try:
    grid = message.to_codes(rows)
  except Exception as e:  # noqa: BLE001
    print(f'[{timestamp()}] Error encoding message: {e}')
    grid = message.to_codes(message.error_to_display_message(e))
  try:
    sink.send(grid)
  except DuplicateContentError:
    print(f'[{timestamp()}] Board already shows this content.')
    return True
  except Exception as e:  # noqa: BLE001
    print(f'[{timestamp()}] Error sending to {sink.name}: {e}')
    return False
  return True


def execute_and_send(widget: str, input: Any, sink: DisplaySink) -> bool:
  return send_rows(render_rows(widget, input), sink)
