# schedule.py
#
# Schedule collection: widget items that fire once at an absolute time.
#
# Stored as {"tasks": [{"id", "time", "widget", "input"}]} with times as
# ISO 8601 UTC timestamps. Tasks are kept sorted by time; tasks sharing a
# time keep the order they were added in.
#
# ScheduleMonitor lets a running schedule pick up edits made by another
# `vbl schedule add/remove` invocation without a restart.

import bisect
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Any, Callable

from datafile import fill_missing_ids, generate_id, read_document, write_document
from exceptions import DataFileError, ValidationError

_INPUT_FORMAT = '%Y-%m-%d %H:%M:%S'


def parse_time(value: str) -> datetime:
  """Parse a stored ISO 8601 timestamp into an aware UTC datetime.

  Naive timestamps are taken to be UTC.
  """
  dt = datetime.fromisoformat(value.replace('Z', '+00:00'))
  if dt.tzinfo is None:
    dt = dt.replace(tzinfo=timezone.utc)
  return dt.astimezone(timezone.utc)


def format_time(dt: datetime) -> str:
  return dt.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


def parse_local_datetime(text: str, tz: tzinfo | None = None) -> datetime:
  """Parse 'YYYY-MM-DD HH:MM:SS' in tz (system local when None) into UTC.

  Raises ValidationError for anything else.
  """
  try:
    naive = datetime.strptime(text.strip(), _INPUT_FORMAT)
  except ValueError:
    raise ValidationError(f'Invalid time {text!r}; expected YYYY-MM-DD HH:MM:SS') from None
  local = naive.replace(tzinfo=tz) if tz is not None else naive.astimezone()
  return local.astimezone(timezone.utc)


@dataclass
class ScheduledTask:
  id: str
  time: datetime
  widget: str
  input: Any = None

  def to_dict(self) -> dict[str, Any]:
    return {'id': self.id, 'time': format_time(self.time), 'widget': self.widget, 'input': self.input}


@dataclass
class Schedule:
  tasks: list[ScheduledTask] = field(default_factory=list)

  @classmethod
  def load(cls, path: Path) -> 'Schedule':
    """Load a schedule file. Missing or blank files give an empty schedule.

    Raises DataFileError if the file is not valid schedule JSON.
    """
    data = read_document(path)
    if data is None:
      return cls()
    try:
      raw_tasks = data.get('tasks', [])
      if not isinstance(raw_tasks, list):
        raise TypeError('tasks must be a list')
      generated = fill_missing_ids(raw_tasks)
      tasks: list[ScheduledTask] = []
      for raw in raw_tasks:
        tasks.append(ScheduledTask(str(raw['id']), parse_time(raw['time']), str(raw['widget']), raw.get('input')))
    except (AttributeError, KeyError, TypeError, ValueError) as e:
      raise DataFileError(str(path), f'invalid schedule: {e}') from e
    # sorted() is stable: equal times keep file order.
    schedule = cls(sorted(tasks, key=lambda t: t.time))
    if generated:
      schedule.save(path)
    return schedule

  def save(self, path: Path) -> None:
    write_document(path, {'tasks': [task.to_dict() for task in self.tasks]})

  def add_task(self, task: ScheduledTask) -> None:
    """Insert task after every task at the same or an earlier time."""
    index = bisect.bisect_right([t.time for t in self.tasks], task.time)
    self.tasks.insert(index, task)

  def add_widget(self, when: datetime, widget: str, input: Any = None) -> str:
    """Schedule widget at when (aware) under a fresh id and return the id."""
    task_id = generate_id(t.id for t in self.tasks)
    self.add_task(ScheduledTask(task_id, when.astimezone(timezone.utc), widget, input))
    return task_id

  def remove_task(self, task_id: str) -> bool:
    for i, task in enumerate(self.tasks):
      if task.id == task_id:
        del self.tasks[i]
        return True
    return False

  def get_task(self, task_id: str) -> ScheduledTask | None:
    return next((t for t in self.tasks if t.id == task_id), None)

  def clear(self) -> None:
    self.tasks.clear()

  def is_empty(self) -> bool:
    return not self.tasks

  def __len__(self) -> int:
    return len(self.tasks)


# --- File monitor ---


class ScheduleMonitor:
  """Watches a schedule file's mtime and reloads it when it changes.

  The file is stat'ed at most once per check_interval seconds, so calling
  reload_if_modified() on every loop iteration is cheap.
  """

  def __init__(
    self,
    path: Path,
    check_interval: float = 3.0,
    clock: Callable[[], float] = time.monotonic,
  ) -> None:
    self.path = path
    self.check_interval = check_interval
    self._clock = clock
    self._mtime = self._current_mtime()
    self._last_check = clock()

  def _current_mtime(self) -> float | None:
    try:
      return self.path.stat().st_mtime
    except FileNotFoundError:
      return None

  def reload_if_modified(self) -> Schedule | None:
    """Return the freshly loaded schedule if the file changed, else None.

    Raises DataFileError if the changed file cannot be parsed; the new mtime
    is remembered first so the same broken edit is reported only once.
    """
    now = self._clock()
    if now - self._last_check < self.check_interval:
      return None
    self._last_check = now
    mtime = self._current_mtime()
    if mtime == self._mtime:
      return None
    self._mtime = mtime
    return Schedule.load(self.path)
