# widgets/resolver.py
#
# Maps widget names to the functions that produce their board rows.
#
# Widgets are loaded lazily by name from an allowlist, so an unknown name in
# a playlist or schedule file fails with a WidgetError rather than importing
# arbitrary modules.

import importlib
import time
from datetime import datetime
from typing import Any, Callable

import message
from exceptions import ValidationError, WidgetError

# name -> (module under widgets/, function name)
_KNOWN_WIDGETS: dict[str, tuple[str, str]] = {
  'text': ('text', 'get_text'),
  'file': ('text', 'get_file'),
  'jokes': ('jokes', 'get_joke'),
  'clear': ('text', 'get_clear'),
}

_INPUT_REQUIRED: frozenset[str] = frozenset({'text', 'file'})

# Cache of resolved widget functions, keyed by name.
_widgets: dict[str, Callable[[Any], list[str]]] = {}


def known_widgets() -> list[str]:
  return sorted(_KNOWN_WIDGETS)


def widget_requires_input(name: str) -> bool:
  return name in _INPUT_REQUIRED


def _get_widget(name: str) -> Callable[[Any], list[str]]:
  if name not in _KNOWN_WIDGETS:
    raise WidgetError(name, 'Unknown widget type')
  if name not in _widgets:
    module_name, fn_name = _KNOWN_WIDGETS[name]
    module = importlib.import_module(f'widgets.{module_name}')
    _widgets[name] = getattr(module, fn_name)
  return _widgets[name]


def execute_widget(name: str, input: Any = None) -> list[str]:
  """Run widget name on input and return its board rows."""
  fn = _get_widget(name)
  start = time.monotonic()
  rows = fn(input)
  elapsed = time.monotonic() - start
  print(f'[{datetime.now().strftime("%H:%M:%S")}] Widget {name} rendered in {elapsed * 1000:.0f}ms')
  return rows


def validate_widget(name: str, input: Any = None) -> list[str]:
  """Check that name/input would display, returning the rows if so.

  Used before an item is saved to a playlist or schedule. Raises
  ValidationError for a bad name or a missing input, and lets widget and
  encoding errors through unchanged.
  """
  if name not in _KNOWN_WIDGETS:
    raise ValidationError(f'Unknown widget {name!r}; choose from: {", ".join(known_widgets())}')
  if widget_requires_input(name) and not input:
    raise ValidationError(f'Widget {name!r} requires input')
  rows = execute_widget(name, input)
  message.validate_rows(rows)
  return rows
