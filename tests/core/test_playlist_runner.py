from pathlib import Path

import pytest

import message
import runtime_state
from playlist import Playlist, PlaylistItem
from runner.common import PLAYLIST_HELP, ControlFlow
from runner.playlist_runner import PlaylistRunner
from runtime_state import PlaylistState, RuntimeState


class _Clock:
  def __init__(self) -> None:
    self.now = 0.0

  def __call__(self) -> float:
    return self.now


class _RecordingSink:
  name = 'recording'

  def __init__(self) -> None:
    self.grids: list[list[list[int]]] = []

  def send(self, grid: list[list[int]]) -> None:
    self.grids.append(grid)


def _playlist(n: int = 3, interval: int = 60) -> Playlist:
  return Playlist(interval, [PlaylistItem(f'id{i:02d}', 'text', f'item {i}') for i in range(n)])


@pytest.fixture
def clock() -> _Clock:
  return _Clock()


@pytest.fixture
def sink() -> _RecordingSink:
  return _RecordingSink()


@pytest.fixture
def state_path(tmp_path: Path) -> Path:
  return tmp_path / 'runtime_state.json'


def _runner(state_path: Path, sink: _RecordingSink, clock: _Clock, **kwargs: object) -> PlaylistRunner:
  return PlaylistRunner(kwargs.pop('playlist', _playlist()), sink, state_path, clock=clock, **kwargs)  # type: ignore[arg-type]


def _shown(sink: _RecordingSink) -> list[str]:
  names = {str(message.to_codes(message.format_message(f'item {i}'))): f'item {i}' for i in range(5)}
  return [names.get(str(grid), '?') for grid in sink.grids]


# --- start ---


def test_start_empty_playlist_warns(
  state_path: Path, sink: _RecordingSink, clock: _Clock, capsys: pytest.CaptureFixture[str]
) -> None:
  runner = _runner(state_path, sink, clock, playlist=Playlist())
  runner.start()
  assert runner.state is PlaylistState.STOPPED
  assert 'empty' in capsys.readouterr().out
  assert runner.tick() is ControlFlow.CONTINUE
  assert sink.grids == []


def test_start_persists_running(state_path: Path, sink: _RecordingSink, clock: _Clock) -> None:
  runner = _runner(state_path, sink, clock)
  runner.start()
  assert runtime_state.load_or_default(state_path).playlist_state is PlaylistState.RUNNING


# --- tick ---


def test_first_tick_shows_immediately_and_advances(state_path: Path, sink: _RecordingSink, clock: _Clock) -> None:
  runner = _runner(state_path, sink, clock)
  runner.start()
  assert runner.tick() is ControlFlow.CONTINUE
  assert len(sink.grids) == 1
  assert runner.current_index == 1
  saved = runtime_state.load_or_default(state_path)
  assert (saved.playlist_state, saved.playlist_index) == (PlaylistState.RUNNING, 1)
  assert saved.last_shown_time is not None


def test_tick_waits_for_interval(state_path: Path, sink: _RecordingSink, clock: _Clock) -> None:
  runner = _runner(state_path, sink, clock)
  runner.start()
  runner.tick()
  clock.now = 59.9
  runner.tick()
  assert len(sink.grids) == 1
  clock.now = 60
  runner.tick()
  assert len(sink.grids) == 2
  assert runner.current_index == 2


def test_rotation_wraps_around(state_path: Path, sink: _RecordingSink, clock: _Clock) -> None:
  runner = _runner(state_path, sink, clock)
  runner.start()
  for step in range(4):
    clock.now = step * 60
    runner.tick()
  assert _shown(sink) == ['item 0', 'item 1', 'item 2', 'item 0']
  assert runner.current_index == 1


def test_state_saved_before_content_is_generated(
  state_path: Path, sink: _RecordingSink, clock: _Clock, monkeypatch: pytest.MonkeyPatch
) -> None:
  seen: list[int] = []

  def _execute(widget: str, input: object, sink: object) -> bool:
    seen.append(runtime_state.load_or_default(state_path).playlist_index)
    return True

  monkeypatch.setattr('runner.playlist_runner.execute_and_send', _execute)
  runner = _runner(state_path, sink, clock, start_index=2)
  runner.start()
  runner.tick()
  assert seen == [2]
  assert runtime_state.load_or_default(state_path).playlist_index == 0


def test_failed_widget_shows_error_and_rotation_continues(
  state_path: Path, sink: _RecordingSink, clock: _Clock
) -> None:
  playlist = Playlist(60, [PlaylistItem('bad1', 'text', None), PlaylistItem('ok01', 'text', 'fine')])
  runner = _runner(state_path, sink, clock, playlist=playlist)
  runner.start()
  runner.tick()
  assert len(sink.grids) == 1
  assert sink.grids[0][1][0] == 63  # red divider of the error screen
  assert runner.current_index == 1


def test_failing_sink_does_not_stop_rotation(state_path: Path, clock: _Clock) -> None:
  class _BrokenSink:
    name = 'broken'

    def send(self, grid: list[list[int]]) -> None:
      raise ConnectionError('board offline')

  runner = PlaylistRunner(_playlist(), _BrokenSink(), state_path, clock=clock)
  runner.start()
  assert runner.tick() is ControlFlow.CONTINUE
  assert runner.current_index == 1


# --- pause / resume ---


def test_pause_resume_shifts_timer(state_path: Path, sink: _RecordingSink, clock: _Clock) -> None:
  runner = _runner(state_path, sink, clock)
  runner.start()
  runner.tick()  # t=0: item 0
  clock.now = 30
  runner.pause()
  assert runner.state is PlaylistState.PAUSED
  assert runtime_state.load_or_default(state_path).playlist_state is PlaylistState.PAUSED
  clock.now = 90
  runner.tick()
  assert len(sink.grids) == 1  # paused
  runner.resume()
  assert runner.state is PlaylistState.RUNNING
  clock.now = 119
  runner.tick()
  assert len(sink.grids) == 1
  clock.now = 120
  runner.tick()
  assert len(sink.grids) == 2


def test_immediate_resume_keeps_deadline(state_path: Path, sink: _RecordingSink, clock: _Clock) -> None:
  runner = _runner(state_path, sink, clock)
  runner.start()
  clock.now = 100
  runner.tick()
  clock.now = 130
  runner.pause()
  runner.resume()
  clock.now = 159.9
  runner.tick()
  assert len(sink.grids) == 1
  clock.now = 160
  runner.tick()
  assert len(sink.grids) == 2


def test_pause_only_from_running(state_path: Path, sink: _RecordingSink, clock: _Clock) -> None:
  runner = _runner(state_path, sink, clock)
  runner.pause()
  assert runner.state is PlaylistState.STOPPED
  runner.resume()
  assert runner.state is PlaylistState.STOPPED


def test_resume_before_any_display(state_path: Path, sink: _RecordingSink, clock: _Clock) -> None:
  runner = _runner(state_path, sink, clock)
  runner.start()
  runner.pause()
  runner.resume()
  runner.tick()
  assert len(sink.grids) == 1


# --- skip / show next ---


def test_skip_n_times_completes_cycle_once(state_path: Path, sink: _RecordingSink, clock: _Clock) -> None:
  runner = _runner(state_path, sink, clock, start_index=1)
  flags = []
  for _ in range(3):
    runner.skip()
    flags.append(runner.cycle_complete)
  assert flags == [False, False, True]
  assert runner.current_index == 1
  assert sink.grids == []


def test_show_next_now_while_running(state_path: Path, sink: _RecordingSink, clock: _Clock) -> None:
  runner = _runner(state_path, sink, clock)
  runner.start()
  runner.tick()
  clock.now = 10
  runner.handle_key('n')
  assert runner.current_index == 1  # index unchanged, timer cleared
  runner.tick()
  assert _shown(sink) == ['item 0', 'item 1']


def test_show_next_now_while_paused_is_two_phase(
  state_path: Path, sink: _RecordingSink, clock: _Clock, capsys: pytest.CaptureFixture[str]
) -> None:
  runner = _runner(state_path, sink, clock)
  runner.start()
  runner.tick()  # item 0 shown, index 1
  runner.handle_key('p')
  runner.handle_key('n')  # clears the timer only
  assert runner.current_index == 1
  runner.handle_key('N')  # timer already clear: skip
  assert runner.current_index == 2
  assert 'Next on resume: #3' in capsys.readouterr().out
  runner.tick()
  assert len(sink.grids) == 1
  runner.handle_key('r')
  runner.tick()
  assert _shown(sink) == ['item 0', 'item 2']


# --- run once ---


def test_run_once_exits_after_full_cycle(state_path: Path, sink: _RecordingSink, clock: _Clock) -> None:
  runner = _runner(state_path, sink, clock, run_once=True)
  runner.start()
  results = []
  for step in range(4):
    clock.now = step * 60
    results.append(runner.tick())
  assert _shown(sink) == ['item 0', 'item 1', 'item 2']
  assert results == [ControlFlow.CONTINUE] * 3 + [ControlFlow.EXIT]
  assert runner.state is PlaylistState.STOPPED


def test_run_once_from_middle_shows_every_item(state_path: Path, sink: _RecordingSink, clock: _Clock) -> None:
  runner = _runner(state_path, sink, clock, run_once=True, start_index=1)
  runner.start()
  step = 0
  while runner.tick() is ControlFlow.CONTINUE:
    step += 1
    clock.now = step * 60
  assert _shown(sink) == ['item 1', 'item 2', 'item 0']


# --- keys ---


def test_quit_key(state_path: Path, sink: _RecordingSink, clock: _Clock) -> None:
  runner = _runner(state_path, sink, clock)
  assert runner.handle_key('q') is ControlFlow.EXIT
  assert runner.handle_key('Q') is ControlFlow.EXIT


def test_help_key(state_path: Path, sink: _RecordingSink, clock: _Clock, capsys: pytest.CaptureFixture[str]) -> None:
  runner = _runner(state_path, sink, clock)
  assert runner.handle_key('?') is ControlFlow.CONTINUE
  assert PLAYLIST_HELP in capsys.readouterr().out


def test_unknown_keys_ignored(state_path: Path, sink: _RecordingSink, clock: _Clock) -> None:
  runner = _runner(state_path, sink, clock)
  runner.start()
  for ch in 'xz1 \n':
    assert runner.handle_key(ch) is ControlFlow.CONTINUE
  assert runner.state is PlaylistState.RUNNING
  assert runner.current_index == 0


# --- restore / cleanup ---


def test_restore_from_state(state_path: Path, sink: _RecordingSink, clock: _Clock) -> None:
  runtime_state.save(state_path, RuntimeState(PlaylistState.RUNNING, 2))
  runner = PlaylistRunner.restore_from_state(_playlist(), sink, state_path, clock=clock)
  assert runner.current_index == 2


def test_restore_from_state_out_of_range(state_path: Path, sink: _RecordingSink, clock: _Clock) -> None:
  runtime_state.save(state_path, RuntimeState(PlaylistState.RUNNING, 7))
  runner = PlaylistRunner.restore_from_state(_playlist(), sink, state_path, clock=clock)
  assert runner.current_index == 0


def test_restore_from_corrupt_state(state_path: Path, sink: _RecordingSink, clock: _Clock) -> None:
  state_path.write_text('{not json')
  runner = PlaylistRunner.restore_from_state(_playlist(), sink, state_path, clock=clock)
  assert runner.current_index == 0


def test_cleanup_persists_stopped(state_path: Path, sink: _RecordingSink, clock: _Clock) -> None:
  runner = _runner(state_path, sink, clock)
  runner.start()
  runner.tick()
  runner.cleanup()
  saved = runtime_state.load_or_default(state_path)
  assert (saved.playlist_state, saved.playlist_index) == (PlaylistState.STOPPED, 1)
