# datafile.py
#
# JSON document helpers shared by the playlist and schedule files, plus the
# short random ids their items carry.
#
# A missing or blank file reads as None so callers can substitute their
# default document. Anything else that fails to parse raises DataFileError:
# a collection the user edited by hand should never be silently replaced.

import json
import secrets
from pathlib import Path
from typing import Any, Iterable

from exceptions import DataFileError

_ID_ALPHABET = 'abcdefghijklmnopqrstuvwxyz0123456789'
_ID_LENGTH = 4


def generate_id(existing: Iterable[str] = ()) -> str:
  """Return a random 4-character [a-z0-9] id not present in existing."""
  taken = set(existing)
  while True:
    item_id = ''.join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))
    if item_id not in taken:
      return item_id


def fill_missing_ids(records: list[Any]) -> bool:
  """Give every record dict without an id a fresh one, in place.

  Ids already in the list are reserved first, so a generated id never
  collides with an explicit id further down. Returns True if any id was
  generated. Non-dict records are left for the caller to reject.
  """
  taken = {str(r['id']) for r in records if isinstance(r, dict) and r.get('id')}
  generated = False
  for record in records:
    if isinstance(record, dict) and not record.get('id'):
      record['id'] = generate_id(taken)
      taken.add(record['id'])
      generated = True
  return generated


def read_document(path: Path) -> dict[str, Any] | None:
  """Return the JSON object stored at path, or None if the file is missing or blank."""
  try:
    text = path.read_text()
  except FileNotFoundError:
    return None
  if not text.strip():
    return None
  try:
    data = json.loads(text)
  except json.JSONDecodeError as e:
    raise DataFileError(str(path), f'invalid JSON: {e}') from e
  if not isinstance(data, dict):
    raise DataFileError(str(path), f'expected a JSON object, got {type(data).__name__}')
  return data


def write_document(path: Path, data: dict[str, Any]) -> None:
  """Write data as pretty-printed JSON, creating parent directories."""
  path.parent.mkdir(parents=True, exist_ok=True)
  path.write_text(json.dumps(data, indent=2) + '\n')
