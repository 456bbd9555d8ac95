# runner/schedule_runner.py
#
# Schedule engine: fires each scheduled task once, when its time arrives.
#
# At most one task is sent per tick, so a backlog of overdue tasks (e.g. the
# machine was asleep) drains one per loop iteration, earliest first, instead
# of flapping the board through all of them at once. Tasks sharing a time
# fire in the order they were added.

from datetime import datetime, timedelta, timezone
from typing import Callable

import config as _config_mod
from exceptions import DataFileError
from integrations.vestaboard import DisplaySink
from runner.common import SCHEDULE_HELP, ControlFlow, Key, execute_and_send, parse_key, timestamp
from schedule import Schedule, ScheduledTask, ScheduleMonitor


def _utcnow() -> datetime:
  return datetime.now(timezone.utc)


class ScheduleRunner:
  help_text = SCHEDULE_HELP

  def __init__(
    self,
    schedule: Schedule,
    sink: DisplaySink,
    monitor: ScheduleMonitor | None = None,
    clock: Callable[[], datetime] = _utcnow,
  ) -> None:
    self.schedule = schedule
    self.sink = sink
    self.monitor = monitor
    self.executed_task_ids: set[str] = set()
    self._clock = clock

  # --- Queries ---

  def next_pending(self) -> ScheduledTask | None:
    """Earliest unexecuted task still in the future."""
    now = self._clock()
    pending = [t for t in self.schedule.tasks if t.id not in self.executed_task_ids and t.time > now]
    return min(pending, key=lambda t: t.time, default=None)

  def next_due(self) -> ScheduledTask | None:
    """Earliest unexecuted task whose time has arrived."""
    now = self._clock()
    due = [t for t in self.schedule.tasks if t.id not in self.executed_task_ids and t.time <= now]
    return min(due, key=lambda t: t.time, default=None)

  def time_until_next(self) -> timedelta | None:
    task = self.next_pending()
    if task is None:
      return None
    return max(task.time - self._clock(), timedelta(0))

  # --- Mutation ---

  def mark_executed(self, task_id: str) -> None:
    self.executed_task_ids.add(task_id)

  def reload(self, schedule: Schedule) -> None:
    """Swap in an edited schedule. Every task in it becomes eligible again."""
    self.schedule = schedule
    self.executed_task_ids.clear()

  # --- Lifecycle ---

  def _describe_next(self) -> str:
    task = self.next_pending()
    if task is None:
      return 'No more upcoming tasks.'
    local = task.time.astimezone(_config_mod.get_timezone())
    return f'Next task: {task.widget} at {local.strftime("%I:%M %p")}'

  def start(self) -> None:
    print(f'[{timestamp()}] Schedule started: {len(self.schedule)} task(s), sending to {self.sink.name}')
    print(self._describe_next())

  def _check_reload(self) -> None:
    if self.monitor is None:
      return
    try:
      schedule = self.monitor.reload_if_modified()
    except DataFileError as e:
      print(f'Warning: keeping current schedule; {e}')
      return
    if schedule is not None:
      self.reload(schedule)
      print(f'[{timestamp()}] Schedule reloaded: {len(schedule)} task(s)')
      print(self._describe_next())

  def tick(self) -> ControlFlow:
    self._check_reload()
    task = self.next_due()
    if task is None:
      return ControlFlow.CONTINUE
    print(f'[{timestamp()}] Running task {task.id}: {task.widget}')
    execute_and_send(task.widget, task.input, self.sink)
    self.mark_executed(task.id)
    print(self._describe_next())
    return ControlFlow.CONTINUE

  def handle_key(self, ch: str) -> ControlFlow:
    key = parse_key(ch)
    if key is Key.QUIT:
      return ControlFlow.EXIT
    if key is Key.HELP:
      print(self.help_text)
    return ControlFlow.CONTINUE

  def cleanup(self) -> None:
    print(f'[{timestamp()}] Schedule stopped: {len(self.executed_task_ids)} task(s) run')
