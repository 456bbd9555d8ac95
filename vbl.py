# vbl.py
#
# Command-line interface for driving a 6×22 Vestaboard.
#
#   vbl show      : put a single widget on the board now.
#   vbl playlist  : manage and run a rotation of widgets, one every
#                   interval_seconds, with pause/resume/next controls.
#   vbl schedule  : manage and run widgets that fire at set times.
#
# Every command takes -d/--dry-run where it would touch the board; dry runs
# print a bordered preview instead. Board access is configured in
# config.toml (see config.example.toml). Playlist and schedule runs hold an
# instance lock so two runners never drive the same board.

import argparse
import sys
import tomllib
from datetime import datetime, timezone
from typing import Any, Callable

import config as _config_mod
import playlist as _playlist_mod
from exceptions import (
  ConfigError,
  DataFileError,
  InputError,
  LockError,
  UnsupportedCharactersError,
  ValidationError,
  WidgetError,
)
from integrations.vestaboard import ConsoleSink, make_sink
from playlist import Playlist
from runner.common import Runner, render_rows, send_rows
from runner.control import ShutdownFlag, run_loop
from runner.keyboard import InputSource, KeyboardListener, NullInput
from runner.lock import InstanceLock
from runner.playlist_runner import PlaylistRunner
from runner.schedule_runner import ScheduleRunner
from schedule import Schedule, ScheduleMonitor, parse_local_datetime
from widgets.resolver import known_widgets, validate_widget

# Errors that end a command with a message and exit status 1.
_USER_ERRORS: tuple[type[BaseException], ...] = (
  ConfigError,
  DataFileError,
  InputError,
  LockError,
  UnsupportedCharactersError,
  ValidationError,
  WidgetError,
  OSError,
  ValueError,
  tomllib.TOMLDecodeError,
)


def _join_input(words: list[str] | None) -> str | None:
  return ' '.join(words) if words else None


def _describe_input(value: Any) -> str:
  if value is None:
    return ''
  return str(value)


def _print_table(rows: list[tuple[str, ...]]) -> None:
  widths = [max(len(row[i]) for row in rows) for i in range(len(rows[0]))]
  for row in rows:
    print('  ' + '  '.join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip())


def _open_keyboard() -> InputSource:
  try:
    return KeyboardListener()
  except InputError as e:
    print(f'Note: {e}; keyboard controls disabled. Stop with Ctrl+C.')
    return NullInput()


def _run_interactive(mode: str, build_runner: Callable[[], Runner]) -> None:
  """Take the instance lock for mode, then build the runner and drive it.

  The runner is only built once the lock is held, and the lock is released
  after the runner's cleanup has run.
  """
  shutdown = ShutdownFlag()
  with InstanceLock(_config_mod.get_path('lock'), mode):
    runner = build_runner()
    shutdown.install_signal_handlers()
    keyboard = _open_keyboard()
    print(runner.help_text)
    try:
      run_loop(runner, keyboard, shutdown)
    finally:
      keyboard.close()


# --- show ---


def cmd_show(args: argparse.Namespace) -> None:
  widget = args.widget
  input = None
  if widget == 'text':
    input = _join_input(args.message)
  elif widget == 'file':
    input = args.path
  sink = make_sink(args.dry_run, title=f'{widget} (dry run)')
  rows = render_rows(widget, input)
  if not send_rows(rows, sink):
    raise SystemExit(1)


# --- playlist ---


def _load_playlist() -> Playlist:
  return Playlist.load(_config_mod.get_path('playlist'))


def cmd_playlist_add(args: argparse.Namespace) -> None:
  input = _join_input(args.input)
  validate_widget(args.widget, input)
  playlist = _load_playlist()
  item_id = playlist.add_widget(args.widget, input)
  playlist.save(_config_mod.get_path('playlist'))
  print(f'Added {args.widget} to playlist as {item_id} ({len(playlist)} item(s))')


def cmd_playlist_list(args: argparse.Namespace) -> None:
  playlist = _load_playlist()
  print(f'Interval: {playlist.interval_seconds}s')
  if playlist.is_empty():
    print('Playlist is empty.')
    return
  rows = [('#', 'ID', 'WIDGET', 'INPUT')]
  for i, item in enumerate(playlist.items, start=1):
    rows.append((str(i), item.id, item.widget, _describe_input(item.input)))
  _print_table(rows)


def cmd_playlist_remove(args: argparse.Namespace) -> None:
  playlist = _load_playlist()
  if not playlist.remove_item(args.id):
    raise ValidationError(f'No playlist item with id {args.id!r}')
  playlist.save(_config_mod.get_path('playlist'))
  print(f'Removed {args.id} ({len(playlist)} item(s) left)')


def cmd_playlist_clear(args: argparse.Namespace) -> None:
  playlist = _load_playlist()
  count = len(playlist)
  playlist.clear()
  playlist.save(_config_mod.get_path('playlist'))
  print(f'Cleared {count} item(s) from playlist')


def cmd_playlist_interval(args: argparse.Namespace) -> None:
  playlist = _load_playlist()
  if args.seconds is None:
    print(f'Interval: {playlist.interval_seconds}s')
    return
  playlist.set_interval(args.seconds)
  playlist.save(_config_mod.get_path('playlist'))
  print(f'Interval set to {args.seconds}s')


def cmd_playlist_preview(args: argparse.Namespace) -> None:
  playlist = _load_playlist()
  if playlist.is_empty():
    print('Playlist is empty.')
    return
  for i, item in enumerate(playlist.items, start=1):
    sink = ConsoleSink(f'[{i}/{len(playlist)}] {item.widget} ({item.id})')
    send_rows(render_rows(item.widget, item.input), sink)


def _start_index(args: argparse.Namespace, playlist: Playlist) -> int:
  if args.index is not None:
    if not 0 <= args.index < len(playlist):
      raise ValidationError(f'Index {args.index} out of range (playlist has {len(playlist)} item(s))')
    return args.index
  if args.id is not None:
    index = playlist.find_index_by_id(args.id)
    if index is None:
      raise ValidationError(f'No playlist item with id {args.id!r}')
    return index
  return 0


def cmd_playlist_run(args: argparse.Namespace) -> None:
  playlist = _load_playlist()
  if playlist.is_empty():
    raise ValidationError('Playlist is empty; add items with `vbl playlist add`')
  _playlist_mod.validate_interval(playlist.interval_seconds)
  start_index = _start_index(args, playlist)
  sink = make_sink(args.dry_run, title='playlist (dry run)')
  state_path = _config_mod.get_path('runtime_state')

  def build_runner() -> PlaylistRunner:
    if args.resume:
      return PlaylistRunner.restore_from_state(playlist, sink, state_path, run_once=args.once)
    return PlaylistRunner(playlist, sink, state_path, start_index=start_index, run_once=args.once)

  _run_interactive('playlist', build_runner)


# --- schedule ---


def _load_schedule() -> Schedule:
  return Schedule.load(_config_mod.get_path('schedule'))


def cmd_schedule_add(args: argparse.Namespace) -> None:
  tz = _config_mod.get_timezone()
  when = parse_local_datetime(args.time, tz)
  input = _join_input(args.input)
  validate_widget(args.widget, input)
  schedule = _load_schedule()
  task_id = schedule.add_widget(when, args.widget, input)
  schedule.save(_config_mod.get_path('schedule'))
  if when <= datetime.now(timezone.utc):
    print(f'Warning: {args.time} is in the past; a running schedule will show it right away.')
  print(f'Scheduled {args.widget} at {when.astimezone(tz).strftime("%Y-%m-%d %H:%M:%S")} as {task_id}')


def cmd_schedule_list(args: argparse.Namespace) -> None:
  schedule = _load_schedule()
  if schedule.is_empty():
    print('Schedule is empty.')
    return
  tz = _config_mod.get_timezone()
  rows = [('ID', 'TIME', 'WIDGET', 'INPUT')]
  for task in schedule.tasks:
    local = task.time.astimezone(tz).strftime('%Y-%m-%d %H:%M:%S')
    rows.append((task.id, local, task.widget, _describe_input(task.input)))
  _print_table(rows)


def cmd_schedule_remove(args: argparse.Namespace) -> None:
  schedule = _load_schedule()
  if not schedule.remove_task(args.id):
    raise ValidationError(f'No scheduled task with id {args.id!r}')
  schedule.save(_config_mod.get_path('schedule'))
  print(f'Removed {args.id} ({len(schedule)} task(s) left)')


def cmd_schedule_clear(args: argparse.Namespace) -> None:
  schedule = _load_schedule()
  count = len(schedule)
  schedule.clear()
  schedule.save(_config_mod.get_path('schedule'))
  print(f'Cleared {count} task(s) from schedule')


def cmd_schedule_preview(args: argparse.Namespace) -> None:
  schedule = _load_schedule()
  if schedule.is_empty():
    print('Schedule is empty.')
    return
  tz = _config_mod.get_timezone()
  for task in schedule.tasks:
    local = task.time.astimezone(tz).strftime('%Y-%m-%d %H:%M')
    sink = ConsoleSink(f'{local}  {task.widget} ({task.id})')
    send_rows(render_rows(task.widget, task.input), sink)


def cmd_schedule_run(args: argparse.Namespace) -> None:
  path = _config_mod.get_path('schedule')
  schedule = Schedule.load(path)
  sink = make_sink(args.dry_run, title='schedule (dry run)')
  monitor = ScheduleMonitor(path, _config_mod.get_reload_interval())

  _run_interactive('schedule', lambda: ScheduleRunner(schedule, sink, monitor))


# --- Argument parsing ---


def _add_dry_run(parser: argparse.ArgumentParser) -> None:
  parser.add_argument('-d', '--dry-run', action='store_true', help='Print a preview instead of sending')


def build_parser() -> argparse.ArgumentParser:
  parser = argparse.ArgumentParser(prog='vbl', description='Send widgets to a Vestaboard.')
  commands = parser.add_subparsers(dest='command', required=True)

  # show
  show = commands.add_parser('show', help='Show a widget on the board now')
  _add_dry_run(show)
  show_widgets = show.add_subparsers(dest='widget', required=True)
  show_text = show_widgets.add_parser('text', help='Show a message')
  show_text.add_argument('message', nargs='+')
  show_file = show_widgets.add_parser('file', help='Show a text file, one line per row')
  show_file.add_argument('path')
  show_widgets.add_parser('jokes', help='Show a random joke')
  show_widgets.add_parser('clear', help='Blank the board')
  show.set_defaults(func=cmd_show)

  widget_help = f'Widget name: {", ".join(known_widgets())}'

  # playlist
  playlist = commands.add_parser('playlist', help='Manage and run the playlist')
  playlist_cmds = playlist.add_subparsers(dest='action', required=True)

  p_add = playlist_cmds.add_parser('add', help='Append a widget to the playlist')
  p_add.add_argument('widget', help=widget_help)
  p_add.add_argument('input', nargs='*', help='Widget input (message text or file path)')
  p_add.set_defaults(func=cmd_playlist_add)

  playlist_cmds.add_parser('list', help='List playlist items').set_defaults(func=cmd_playlist_list)

  p_remove = playlist_cmds.add_parser('remove', help='Remove an item by id')
  p_remove.add_argument('id')
  p_remove.set_defaults(func=cmd_playlist_remove)

  playlist_cmds.add_parser('clear', help='Remove every item').set_defaults(func=cmd_playlist_clear)

  p_interval = playlist_cmds.add_parser('interval', help='Show or set seconds per item')
  p_interval.add_argument('seconds', nargs='?', type=int)
  p_interval.set_defaults(func=cmd_playlist_interval)

  playlist_cmds.add_parser('preview', help='Print every item').set_defaults(func=cmd_playlist_preview)

  p_run = playlist_cmds.add_parser('run', help='Run the playlist rotation')
  _add_dry_run(p_run)
  p_run.add_argument('--once', action='store_true', help='Stop after showing every item once')
  start = p_run.add_mutually_exclusive_group()
  start.add_argument('--resume', action='store_true', help='Continue from the last saved position')
  start.add_argument('--index', type=int, help='Start at this 0-based position')
  start.add_argument('--id', help='Start at the item with this id')
  p_run.set_defaults(func=cmd_playlist_run)

  # schedule
  schedule = commands.add_parser('schedule', help='Manage and run the schedule')
  schedule_cmds = schedule.add_subparsers(dest='action', required=True)

  s_add = schedule_cmds.add_parser('add', help='Schedule a widget')
  s_add.add_argument('time', help='Local time as "YYYY-MM-DD HH:MM:SS"')
  s_add.add_argument('widget', help=widget_help)
  s_add.add_argument('input', nargs='*', help='Widget input (message text or file path)')
  s_add.set_defaults(func=cmd_schedule_add)

  schedule_cmds.add_parser('list', help='List scheduled tasks').set_defaults(func=cmd_schedule_list)

  s_remove = schedule_cmds.add_parser('remove', help='Remove a task by id')
  s_remove.add_argument('id')
  s_remove.set_defaults(func=cmd_schedule_remove)

  schedule_cmds.add_parser('clear', help='Remove every task').set_defaults(func=cmd_schedule_clear)
  schedule_cmds.add_parser('preview', help='Print every task').set_defaults(func=cmd_schedule_preview)

  s_run = schedule_cmds.add_parser('run', help='Run the schedule')
  _add_dry_run(s_run)
  s_run.set_defaults(func=cmd_schedule_run)

  return parser


def main(argv: list[str] | None = None) -> None:
  args = build_parser().parse_args(argv)
  try:
    _config_mod.load_config()
    args.func(args)
  except _USER_ERRORS as e:
    print(f'Error: {e}', file=sys.stderr)
    raise SystemExit(1) from None


if __name__ == '__main__':
  main()
