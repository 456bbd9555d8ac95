# widgets/text.py
#
# Text-based widgets.
#   get_text() : wraps and centers a message.
#   get_file() : shows a pre-laid-out text file, one line per row.
#   get_clear(): a blank board.

from pathlib import Path
from typing import Any

import message
from exceptions import WidgetError


def get_text(input: Any) -> list[str]:
  if not isinstance(input, str) or not input.strip():
    raise WidgetError('text', 'input must be a non-empty string')
  return message.format_message(input)


def get_file(input: Any) -> list[str]:
  """Return the lines of the file at input as board rows.

  Lines are used as written (trailing whitespace stripped) and padded to
  the board width; the board is filled from the top. A missing file raises
  FileNotFoundError.
  """
  if not isinstance(input, str) or not input.strip():
    raise WidgetError('file', 'input must be a file path')
  lines = [line.rstrip() for line in Path(input).read_text().splitlines()]
  while lines and not lines[-1]:
    lines.pop()
  if len(lines) > message.ROWS:
    raise WidgetError('file', f'{input} has {len(lines)} lines; the board has {message.ROWS} rows')
  for i, line in enumerate(lines, start=1):
    if len(line) > message.COLS:
      raise WidgetError('file', f'{input} line {i} is longer than {message.COLS} characters')
  rows = [line.ljust(message.COLS) for line in lines]
  return rows + [' ' * message.COLS] * (message.ROWS - len(rows))


def get_clear(input: Any = None) -> list[str]:
  return [' ' * message.COLS] * message.ROWS
