# runner/keyboard.py
#
# Non-blocking single-key input for the interactive runners.
#
# KeyboardListener switches the terminal to cbreak mode (keys arrive without
# Enter, Ctrl+C still raises SIGINT) and reads one character at a time on a
# daemon thread. Only standalone printable characters are queued: an escape
# sequence (function keys, arrows, Alt+key) is read as a whole and dropped,
# so its trailing bytes never reach the runner as control keys. The control
# loop drains the queue with try_recv(), which never blocks. close() restores
# the terminal.

import os
import queue
import select
import sys
import termios
import threading
import tty
from typing import Iterable, Protocol, TextIO

from exceptions import InputError

_POLL_TIMEOUT = 0.05  # seconds; bounds how long close() waits for the reader
_ESCAPE_TIMEOUT = 0.01  # seconds; the rest of an escape sequence arrives within this
_ESC = b'\x1b'


class InputSource(Protocol):
  def try_recv(self) -> str | None: ...

  def close(self) -> None: ...


class KeyboardListener:
  def __init__(self, stream: TextIO | None = None) -> None:
    self._stream = stream if stream is not None else sys.stdin
    if not self._stream.isatty():
      raise InputError('interactive controls need a terminal (stdin is not a TTY)')
    self._fd = self._stream.fileno()
    self._saved = termios.tcgetattr(self._fd)
    self._keys: queue.Queue[str] = queue.Queue()
    self._stop = threading.Event()
    tty.setcbreak(self._fd)
    self._thread = threading.Thread(target=self._read_loop, daemon=True)
    self._thread.start()

  def _read_loop(self) -> None:
    while not self._stop.is_set():
      ready, _, _ = select.select([self._fd], [], [], _POLL_TIMEOUT)
      if not ready:
        continue
      data = os.read(self._fd, 1)
      if not data:
        return  # EOF
      if data == _ESC:
        self._discard_pending()
        continue
      ch = data.decode(errors='ignore')
      if ch and ch.isprintable():
        self._keys.put(ch)

  def _discard_pending(self) -> None:
    while select.select([self._fd], [], [], _ESCAPE_TIMEOUT)[0]:
      if not os.read(self._fd, 64):
        return

  def try_recv(self) -> str | None:
    try:
      return self._keys.get_nowait()
    except queue.Empty:
      return None

  def close(self) -> None:
    self._stop.set()
    self._thread.join(timeout=_POLL_TIMEOUT * 4)
    termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved)

  def __enter__(self) -> 'KeyboardListener':
    return self

  def __exit__(self, *exc_info: object) -> None:
    self.close()


class NullInput:
  """Input source for non-interactive runs: never yields a key."""

  def try_recv(self) -> str | None:
    return None

  def close(self) -> None:
    pass

  def __enter__(self) -> 'NullInput':
    return self

  def __exit__(self, *exc_info: object) -> None:
    pass


class MockInput:
  """Replays a scripted key sequence, one key per try_recv(), then None."""

  def __init__(self, keys: Iterable[str | None]) -> None:
    self._keys = list(keys)

  def try_recv(self) -> str | None:
    if not self._keys:
      return None
    return self._keys.pop(0)

  def close(self) -> None:
    self._keys.clear()
