# runner/control.py
#
# The interactive control loop shared by `vbl playlist run` and
# `vbl schedule run`.
#
# Each iteration, in order: stop if shutdown was requested, handle at most
# one key, let the runner tick, sleep. Shutdown is only noticed between
# iterations, so an in-flight send always completes. The runner's cleanup
# runs on every exit path; callers hold the instance lock around run_loop()
# so the lock outlives the cleanup.

import signal
import threading
import time
from types import FrameType
from typing import Callable

from runner.common import ControlFlow, Runner, timestamp
from runner.keyboard import InputSource

POLL_INTERVAL = 0.1  # seconds between loop iterations


class ShutdownFlag:
  """Set from a signal handler (or a test) to stop the control loop."""

  def __init__(self) -> None:
    self._event = threading.Event()

  def request(self) -> None:
    self._event.set()

  def is_set(self) -> bool:
    return self._event.is_set()

  def install_signal_handlers(self) -> None:
    """Route SIGINT and SIGTERM to request(). Must be called from the main thread."""

    def _handler(signum: int, frame: FrameType | None) -> None:
      print(f'\n[{timestamp()}] Received {signal.Signals(signum).name}, shutting down...')
      self.request()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)


def run_loop(
  runner: Runner,
  keyboard: InputSource,
  shutdown: ShutdownFlag,
  poll_interval: float = POLL_INTERVAL,
  sleep: Callable[[float], None] = time.sleep,
) -> None:
  runner.start()
  try:
    while not shutdown.is_set():
      ch = keyboard.try_recv()
      if ch is not None and runner.handle_key(ch) is ControlFlow.EXIT:
        break
      try:
        if runner.tick() is ControlFlow.EXIT:
          break
      except Exception as e:  # noqa: BLE001
        print(f'[{timestamp()}] Error: {e}')
      sleep(poll_interval)
  finally:
    runner.cleanup()
