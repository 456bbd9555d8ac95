# runner/lock.py
#
# Single-instance lock for `vbl playlist run` and `vbl schedule run`.
#
# The lock is a JSON file {"mode", "pid", "started_at"}. A file whose pid is
# no longer running, or which cannot be parsed, is stale and is taken over.
# The lock is advisory: it guards against two runners driving the same board,
# not against a hostile process.
#
#   with InstanceLock(path, 'playlist'):
#     ...

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from exceptions import LockError


def pid_is_running(pid: int) -> bool:
  """Return True if a process with pid exists (signal 0 probes without killing)."""
  if pid <= 0:
    return False
  try:
    os.kill(pid, 0)
  except ProcessLookupError:
    return False
  except PermissionError:
    return True  # exists, owned by another user
  except OSError:
    return False
  return True


class InstanceLock:
  def __init__(
    self,
    path: Path,
    mode: str,
    is_alive: Callable[[int], bool] = pid_is_running,
  ) -> None:
    self.path = path
    self.mode = mode
    self._is_alive = is_alive
    self._held = False

  def _read_holder(self) -> dict[str, Any] | None:
    """Return the live holder's lock record, or None if the lock is free or stale."""
    try:
      text = self.path.read_text()
    except FileNotFoundError:
      return None
    except OSError as e:
      print(f'Warning: unreadable lock file {self.path} ({e}); taking it over')
      return None
    try:
      data = json.loads(text)
      pid = int(data['pid'])
    except (ValueError, KeyError, TypeError):
      print(f'Warning: corrupt lock file {self.path}; taking it over')
      return None
    if not self._is_alive(pid):
      print(f'Removing stale lock from PID {pid}')
      return None
    return data

  def acquire(self) -> 'InstanceLock':
    """Take the lock or raise LockError naming the process that holds it."""
    holder = self._read_holder()
    if holder is not None:
      started = holder.get('started_at', '')
      try:
        started = datetime.fromisoformat(started).strftime('%H:%M:%S')
      except (TypeError, ValueError):
        pass
      mode = holder.get('mode', 'vbl')
      raise LockError(f'{mode} already running (PID {holder["pid"]}, started {started})')
    self.path.parent.mkdir(parents=True, exist_ok=True)
    record = {'mode': self.mode, 'pid': os.getpid(), 'started_at': datetime.now().isoformat()}
    self.path.write_text(json.dumps(record, indent=2) + '\n')
    self._held = True
    return self

  def release(self) -> None:
    if not self._held:
      return
    self._held = False
    self.path.unlink(missing_ok=True)

  def __enter__(self) -> 'InstanceLock':
    return self.acquire()

  def __exit__(self, *exc_info: object) -> None:
    self.release()
