# runtime_state.py
#
# Persisted position of a running playlist, so `vbl playlist run --resume`
# can continue where the last run stopped (or crashed).
#
# Loading never fails: a missing, blank, unreadable or corrupt file yields
# the default state, and keys missing from an older file take their
# defaults. Saving is best effort; a failed write is reported and the
# rotation carries on.

import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any


class PlaylistState(Enum):
  STOPPED = 'Stopped'
  RUNNING = 'Running'
  PAUSED = 'Paused'


@dataclass
class RuntimeState:
  playlist_state: PlaylistState = PlaylistState.STOPPED
  playlist_index: int = 0
  last_shown_time: datetime | None = None

  @classmethod
  def from_dict(cls, data: dict[str, Any]) -> 'RuntimeState':
    state = cls()
    try:
      state.playlist_state = PlaylistState(data.get('playlist_state', state.playlist_state.value))
    except ValueError:
      pass
    index = data.get('playlist_index')
    if isinstance(index, int) and not isinstance(index, bool) and index >= 0:
      state.playlist_index = index
    shown = data.get('last_shown_time')
    if isinstance(shown, str):
      try:
        state.last_shown_time = datetime.fromisoformat(shown.replace('Z', '+00:00'))
      except ValueError:
        pass
    return state

  def to_dict(self) -> dict[str, Any]:
    return {
      'playlist_state': self.playlist_state.value,
      'playlist_index': self.playlist_index,
      'last_shown_time': self.last_shown_time.isoformat() if self.last_shown_time else None,
    }


def load_or_default(path: Path) -> RuntimeState:
  try:
    text = path.read_text()
  except FileNotFoundError:
    return RuntimeState()
  except (OSError, UnicodeDecodeError) as e:
    print(f'Warning: ignoring unreadable runtime state {path}: {e}')
    return RuntimeState()
  if not text.strip():
    return RuntimeState()
  try:
    data = json.loads(text)
  except ValueError as e:
    print(f'Warning: ignoring corrupt runtime state {path}: {e}')
    return RuntimeState()
  if not isinstance(data, dict):
    print(f'Warning: ignoring runtime state {path}: expected a JSON object')
    return RuntimeState()
  return RuntimeState.from_dict(data)


def save(path: Path, state: RuntimeState) -> bool:
  """Write state to path. Returns False (after printing why) on failure."""
  try:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(state.to_dict(), indent=2) + '\n')
  except OSError as e:
    print(f'Warning: could not save runtime state to {path}: {e}')
    return False
  return True
