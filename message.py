# message.py
#
# Grid encoder for the 6×22 board.
#
# Turns free text into exactly six rows of 22 characters (word-wrapped,
# centered horizontally and vertically), renders error screens, and converts
# rows into the integer character codes the board API expects.
#
# Text is lower-case: upper-case letters are reserved for the colour tokens
# (R O Y G B V W K), the filled tile (F) and the degree sign (D). Characters
# outside the alphabet are never silently dropped from a message; encoding
# fails with UnsupportedCharactersError instead.

import json

import requests

from exceptions import (
  ApiError,
  ConfigError,
  DataFileError,
  LockError,
  UnsupportedCharactersError,
  ValidationError,
  WidgetError,
)

ROWS = 6
COLS = 22

_BLANK_ROW = ' ' * COLS
_DIVIDER = 'R ' * (COLS // 2)
_ERROR_BODY_ROWS = ROWS - 2
_MAX_ERROR_TEXT = 40

# --- Character codes ---
# https://docs.vestaboard.com/docs/characterCodes

_CHAR_CODES: dict[str, int] = {' ': 0}
_CHAR_CODES.update({ch: i + 1 for i, ch in enumerate('abcdefghijklmnopqrstuvwxyz')})  # 1-26
_CHAR_CODES.update({ch: i + 27 for i, ch in enumerate('123456789')})  # 27-35
_CHAR_CODES.update(
  {
    '0': 36,
    '!': 37,
    '@': 38,
    '#': 39,
    '$': 40,
    '(': 41,
    ')': 42,
    '-': 44,
    '+': 46,
    '&': 47,
    '=': 48,
    ';': 49,
    ':': 50,
    "'": 52,
    '"': 53,
    '%': 54,
    ',': 55,
    '.': 56,
    '/': 59,
    '?': 60,
    'D': 62,  # degree sign
    'R': 63,  # red
    'O': 64,  # orange
    'Y': 65,  # yellow
    'G': 66,  # green
    'B': 67,  # blue
    'V': 68,  # violet
    'W': 69,  # white
    'K': 70,  # black
    'F': 71,  # filled
  }
)


def is_valid_character(ch: str) -> bool:
  return ch in _CHAR_CODES


def invalid_characters(rows: list[str]) -> list[str]:
  """Return the sorted, de-duplicated characters in rows that cannot be shown."""
  return sorted({ch for row in rows for ch in row if ch not in _CHAR_CODES})


def validate_rows(rows: list[str]) -> None:
  """Raise UnsupportedCharactersError if any row holds a character outside the alphabet."""
  bad = invalid_characters(rows)
  if bad:
    raise UnsupportedCharactersError(bad)


def to_codes(rows: list[str]) -> list[list[int]]:
  """Encode rows into a ROWS × COLS integer grid.

  Validates first, so a failed encode produces no partial grid. Short rows
  and missing rows are padded with blanks; anything past ROWS × COLS is cut.
  """
  validate_rows(rows)
  grid: list[list[int]] = []
  for row in rows[:ROWS]:
    codes = [_CHAR_CODES[ch] for ch in row[:COLS]]
    codes += [0] * (COLS - len(codes))
    grid.append(codes)
  while len(grid) < ROWS:
    grid.append([0] * COLS)
  return grid


def encode_text(text: str) -> list[list[int]]:
  """Validate, lay out and encode free text in one step.

  The whole text is checked, including words that would fall off the bottom
  of the board, so the result never depends on where truncation happens.
  Only the space separates words; tabs and newlines are not on the board
  and are rejected like any other unsupported character.
  """
  validate_rows([text])
  return to_codes(format_message(text))


# --- Layout ---


def wrap_words(text: str, width: int = COLS) -> list[str]:
  """Greedily pack whitespace-separated words into rows of at most width.

  A word longer than width is split into width-sized chunks in order. The
  last chunk becomes the current row and may be joined by following words.
  """
  rows: list[str] = []
  current = ''
  for word in text.split():
    while len(word) > width:
      if current:
        rows.append(current)
        current = ''
      rows.append(word[:width])
      word = word[width:]
    if not current:
      current = word
    elif len(current) + 1 + len(word) <= width:
      current = f'{current} {word}'
    else:
      rows.append(current)
      current = word
  if current:
    rows.append(current)
  return rows


def center_line(line: str) -> str:
  # Odd leftover space goes on the right, matching str.format's '^'.
  return f'{line:^{COLS}}'


def center_message(rows: list[str], height: int = ROWS) -> list[str]:
  """Pad rows with blank rows to height, splitting the padding top/bottom.

  The top gets pad // 2 rows and the bottom the rest. Input taller than
  height is truncated.
  """
  rows = rows[:height]
  pad = height - len(rows)
  top = pad // 2
  return [_BLANK_ROW] * top + rows + [_BLANK_ROW] * (pad - top)


def format_message(text: str) -> list[str]:
  """Lay out free text as exactly ROWS centered rows of COLS characters."""
  rows = [center_line(row) for row in wrap_words(text)]
  return center_message(rows)


def full_justify_line(left: str, right: str) -> str:
  """Return left and right pushed to opposite edges of a COLS-wide row.

  If the two do not fit with at least one space between them, they are
  joined by a single space and the result is longer than COLS.
  """
  used = len(left) + len(right)
  if used >= COLS - 1:
    return f'{left} {right}'
  return left + ' ' * (COLS - used) + right


# --- Errors ---


def _sanitize(text: str) -> str:
  return ''.join(ch for ch in text if ch in _CHAR_CODES)


def format_error(label: str, text: str) -> list[str]:
  """Render an error screen.

  Row 0 is the centered label, row 1 a red divider, and rows 2-5 the
  lower-cased message wrapped, centered and vertically centered. Characters
  the board cannot show are dropped so the error screen always encodes.
  """
  header = center_line(_sanitize(label.lower()))
  body = [center_line(row) for row in wrap_words(_sanitize(text.lower()))]
  return [header, _DIVIDER] + center_message(body, _ERROR_BODY_ROWS)


_WIDGET_ERROR_TEXT: dict[str, str] = {
  'text': 'text processing error',
  'file': 'file processing error',
  'jokes': 'joke unavailable',
}


def _api_error_text(status: int) -> str:
  if status in (401, 403):
    return 'access denied'
  if status == 404:
    return 'service not found'
  if status == 409:
    return 'already displayed'
  if status == 423:
    return 'board locked'
  if status >= 500:
    return 'service temporarily down'
  return 'request failed'


def _describe_error(e: BaseException) -> tuple[str, str]:
  if isinstance(e, FileNotFoundError):
    return 'file error', 'file not found'
  if isinstance(e, OSError) and not isinstance(e, requests.RequestException):
    return 'file error', 'file access error'
  if isinstance(e, (DataFileError, json.JSONDecodeError)):
    return 'data error', 'invalid data format'
  if isinstance(e, WidgetError):
    return 'widget error', _WIDGET_ERROR_TEXT.get(e.widget, 'unknown error')
  if isinstance(e, UnsupportedCharactersError):
    return 'message error', 'unsupported characters'
  if isinstance(e, ApiError):
    return 'api error', _api_error_text(e.status)
  if isinstance(e, requests.Timeout):
    return 'network error', 'request timed out'
  if isinstance(e, requests.RequestException):
    return 'network error', 'cannot reach vestaboard'
  if isinstance(e, ConfigError):
    return 'config error', f"config: {e.key.lower().replace('_', ' ')} missing"
  if isinstance(e, LockError):
    return 'lock error', 'already running'
  if isinstance(e, ValidationError):
    return 'error', str(e)
  text = str(e)
  if len(text) > _MAX_ERROR_TEXT:
    text = text[:_MAX_ERROR_TEXT] + '...'
  return 'error', text


def error_to_display_message(e: BaseException) -> list[str]:
  """Map an exception to a short, board-safe error screen."""
  label, text = _describe_error(e)
  return format_error(label, text)
