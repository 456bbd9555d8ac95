import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

import runtime_state as _mod
from runtime_state import PlaylistState, RuntimeState

# --- load_or_default ---


def test_missing_file_gives_default(tmp_path: Path) -> None:
  assert _mod.load_or_default(tmp_path / 'state.json') == RuntimeState()


def test_blank_file_gives_default(tmp_path: Path) -> None:
  path = tmp_path / 'state.json'
  path.write_text('')
  assert _mod.load_or_default(path) == RuntimeState()


def test_corrupt_file_gives_default(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
  path = tmp_path / 'state.json'
  path.write_text('{"playlist_state": ')
  assert _mod.load_or_default(path) == RuntimeState()
  assert 'Warning' in capsys.readouterr().out


def test_wrong_shape_gives_default(tmp_path: Path) -> None:
  path = tmp_path / 'state.json'
  path.write_text('[1, 2, 3]')
  assert _mod.load_or_default(path) == RuntimeState()


def test_directory_in_place_of_file_gives_default(tmp_path: Path) -> None:
  path = tmp_path / 'state.json'
  path.mkdir()
  assert _mod.load_or_default(path) == RuntimeState()


def test_partial_document_fills_defaults(tmp_path: Path) -> None:
  path = tmp_path / 'state.json'
  path.write_text('{"playlist_index": 4}')
  state = _mod.load_or_default(path)
  assert state.playlist_index == 4
  assert state.playlist_state is PlaylistState.STOPPED
  assert state.last_shown_time is None


def test_bad_values_fall_back(tmp_path: Path) -> None:
  path = tmp_path / 'state.json'
  path.write_text('{"playlist_state": "Dancing", "playlist_index": -2, "last_shown_time": "yesterday"}')
  assert _mod.load_or_default(path) == RuntimeState()


# --- save ---


def test_save_round_trip(tmp_path: Path) -> None:
  path = tmp_path / 'data' / 'state.json'
  shown = datetime(2026, 3, 1, 8, 15, tzinfo=timezone.utc)
  state = RuntimeState(PlaylistState.PAUSED, 2, shown)
  assert _mod.save(path, state)
  assert json.loads(path.read_text()) == {
    'playlist_state': 'Paused',
    'playlist_index': 2,
    'last_shown_time': '2026-03-01T08:15:00+00:00',
  }
  assert _mod.load_or_default(path) == state


def test_save_failure_is_reported_not_raised(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
  blocker = tmp_path / 'blocker'
  blocker.write_text('not a directory')
  assert not _mod.save(blocker / 'state.json', RuntimeState())
  assert 'could not save runtime state' in capsys.readouterr().out
