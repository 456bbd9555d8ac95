# runner/playlist_runner.py
#
# Rotation engine: shows each playlist item for interval_seconds, in order,
# looping forever (or once through with run_once).
#
#   Stopped --start--> Running <--pause/resume--> Paused
#   Running/Paused --cleanup--> Stopped
#
# The position is saved to the runtime state file on every transition, and
# once more just before an item is generated, so a crash mid-send resumes on
# the same item. Timing uses a monotonic clock; pausing shifts the last
# display time forward by the time spent paused so the interval continues
# where it left off.

import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import runtime_state
from integrations.vestaboard import DisplaySink
from playlist import Playlist
from runner.common import PLAYLIST_HELP, ControlFlow, Key, execute_and_send, parse_key, timestamp
from runtime_state import PlaylistState, RuntimeState


def _utcnow() -> datetime:
  return datetime.now(timezone.utc)


class PlaylistRunner:
  help_text = PLAYLIST_HELP

  def __init__(
    self,
    playlist: Playlist,
    sink: DisplaySink,
    state_path: Path,
    start_index: int = 0,
    run_once: bool = False,
    clock: Callable[[], float] = time.monotonic,
    wall_clock: Callable[[], datetime] = _utcnow,
  ) -> None:
    self.playlist = playlist
    self.sink = sink
    self.state_path = state_path
    self.run_once = run_once
    self.state = PlaylistState.STOPPED
    self.current_index = start_index if 0 <= start_index < len(playlist) else 0
    self.cycle_complete = False
    self._cycle_start = self.current_index
    self._last_display: float | None = None  # None = show on the next tick
    self._last_shown_time: datetime | None = None
    self._paused_at: float | None = None
    self._clock = clock
    self._wall_clock = wall_clock

  @classmethod
  def restore_from_state(
    cls,
    playlist: Playlist,
    sink: DisplaySink,
    state_path: Path,
    run_once: bool = False,
    **kwargs: Any,
  ) -> 'PlaylistRunner':
    """Build a runner positioned where the saved runtime state left off.

    A saved index past the end of the playlist (items were removed since)
    starts from the beginning.
    """
    saved = runtime_state.load_or_default(state_path)
    index = saved.playlist_index if saved.playlist_index < len(playlist) else 0
    runner = cls(playlist, sink, state_path, start_index=index, run_once=run_once, **kwargs)
    runner._last_shown_time = saved.last_shown_time
    return runner

  # --- State persistence ---

  def _save_state(self) -> None:
    runtime_state.save(
      self.state_path,
      RuntimeState(self.state, self.current_index, self._last_shown_time),
    )

  # --- Lifecycle ---

  def start(self) -> None:
    if self.playlist.is_empty():
      print('Warning: playlist is empty; add items with `vbl playlist add`.')
      return
    self.state = PlaylistState.RUNNING
    self.cycle_complete = False
    self._cycle_start = self.current_index
    self._save_state()
    print(
      f'[{timestamp()}] Playlist started: {len(self.playlist)} item(s), '
      f'every {self.playlist.interval_seconds}s, starting at #{self.current_index + 1}'
      f'{" (once)" if self.run_once else ""}'
    )

  def cleanup(self) -> None:
    self.state = PlaylistState.STOPPED
    self._save_state()
    print(f'[{timestamp()}] Playlist stopped at #{self.current_index + 1}')

  @property
  def is_complete(self) -> bool:
    return self.run_once and self.cycle_complete

  # --- Rotation ---

  def _advance_index(self) -> None:
    if self.playlist.is_empty():
      return
    self.current_index = (self.current_index + 1) % len(self.playlist)
    if self.current_index == self._cycle_start:
      self.cycle_complete = True

  def _due(self) -> bool:
    if self._last_display is None:
      return True
    return self._clock() - self._last_display >= self.playlist.interval_seconds

  def tick(self) -> ControlFlow:
    if self.is_complete:
      print('Completed one full cycle.')
      self.state = PlaylistState.STOPPED
      self._save_state()
      return ControlFlow.EXIT
    if self.state is not PlaylistState.RUNNING or not self._due():
      return ControlFlow.CONTINUE
    item = self.playlist.get_item_by_index(self.current_index)
    if item is None:
      return ControlFlow.CONTINUE
    self._save_state()
    print(f'[{timestamp()}] Showing #{self.current_index + 1}/{len(self.playlist)}: {item.widget} ({item.id})')
    execute_and_send(item.widget, item.input, self.sink)
    self._last_display = self._clock()
    self._last_shown_time = self._wall_clock()
    self._advance_index()
    self._save_state()
    return ControlFlow.CONTINUE

  def skip(self) -> None:
    """Move to the next item without showing anything."""
    self._advance_index()
    self._save_state()

  # --- Controls ---

  def pause(self) -> None:
    if self.state is not PlaylistState.RUNNING:
      return
    self.state = PlaylistState.PAUSED
    self._paused_at = self._clock()
    self._save_state()
    print(f'[{timestamp()}] Paused. Press r to resume.')

  def resume(self) -> None:
    if self.state is not PlaylistState.PAUSED:
      return
    if self._last_display is not None and self._paused_at is not None:
      self._last_display += self._clock() - self._paused_at
    self._paused_at = None
    self.state = PlaylistState.RUNNING
    self._save_state()
    print(f'[{timestamp()}] Resumed.')

  def show_next_now(self) -> None:
    """Show the next item on the next tick instead of waiting out the interval.

    While paused the first press only clears the timer (the item shows as
    soon as the rotation resumes); each further press moves one item on.
    """
    if self._last_display is None and self.state is PlaylistState.PAUSED:
      self.skip()
    else:
      self._last_display = None
    if self.state is PlaylistState.PAUSED:
      item = self.playlist.get_item_by_index(self.current_index)
      if item is not None:
        print(f'Next on resume: #{self.current_index + 1} {item.widget} ({item.id})')

  def handle_key(self, ch: str) -> ControlFlow:
    key = parse_key(ch)
    if key is Key.QUIT:
      return ControlFlow.EXIT
    if key is Key.PAUSE:
      self.pause()
    elif key is Key.RESUME:
      self.resume()
    elif key is Key.NEXT:
      self.show_next_now()
    elif key is Key.HELP:
      print(self.help_text)
    return ControlFlow.CONTINUE
