# playlist.py
#
# Playlist collection: an ordered list of widget items shown in rotation,
# each for interval_seconds.
#
# Stored as {"interval_seconds": 300, "items": [{"id", "widget", "input"}]}.
# Items loaded without an id get one, and the file is rewritten so the id
# sticks. The minimum interval is enforced when the interval is changed and
# when a rotation starts, not on load, so an old file with a short interval
# can still be listed and edited.

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from datafile import fill_missing_ids, generate_id, read_document, write_document
from exceptions import DataFileError, ValidationError

DEFAULT_INTERVAL = 300
MIN_INTERVAL = 60


@dataclass
class PlaylistItem:
  id: str
  widget: str
  input: Any = None

  def to_dict(self) -> dict[str, Any]:
    return {'id': self.id, 'widget': self.widget, 'input': self.input}


def validate_interval(seconds: int) -> None:
  if seconds < MIN_INTERVAL:
    raise ValidationError(f'Interval must be at least {MIN_INTERVAL} seconds, got {seconds}')


@dataclass
class Playlist:
  interval_seconds: int = DEFAULT_INTERVAL
  items: list[PlaylistItem] = field(default_factory=list)

  # --- Loading and saving ---

  @classmethod
  def load(cls, path: Path) -> 'Playlist':
    """Load a playlist file. Missing or blank files give an empty playlist.

    Raises DataFileError if the file is not valid playlist JSON.
    """
    data = read_document(path)
    if data is None:
      return cls()
    try:
      interval = int(data.get('interval_seconds', DEFAULT_INTERVAL))
      raw_items = data.get('items', [])
      if not isinstance(raw_items, list):
        raise TypeError('items must be a list')
      generated = fill_missing_ids(raw_items)
      playlist = cls(interval_seconds=interval)
      for raw in raw_items:
        playlist.items.append(PlaylistItem(str(raw['id']), str(raw['widget']), raw.get('input')))
    except (AttributeError, KeyError, TypeError, ValueError) as e:
      raise DataFileError(str(path), f'invalid playlist: {e}') from e
    if generated:
      playlist.save(path)
    return playlist

  def save(self, path: Path) -> None:
    write_document(
      path,
      {'interval_seconds': self.interval_seconds, 'items': [item.to_dict() for item in self.items]},
    )

  # --- Mutation ---

  def add_item(self, item: PlaylistItem) -> None:
    self.items.append(item)

  def add_widget(self, widget: str, input: Any = None) -> str:
    """Append a new item with a fresh id and return the id."""
    item_id = generate_id(item.id for item in self.items)
    self.items.append(PlaylistItem(item_id, widget, input))
    return item_id

  def remove_item(self, item_id: str) -> bool:
    """Remove the item with item_id. Returns False if there was none."""
    index = self.find_index_by_id(item_id)
    if index is None:
      return False
    del self.items[index]
    return True

  def clear(self) -> None:
    self.items.clear()

  def set_interval(self, seconds: int) -> None:
    validate_interval(seconds)
    self.interval_seconds = seconds

  # --- Queries ---

  def is_empty(self) -> bool:
    return not self.items

  def __len__(self) -> int:
    return len(self.items)

  def get_item(self, item_id: str) -> PlaylistItem | None:
    index = self.find_index_by_id(item_id)
    return None if index is None else self.items[index]

  def get_item_by_index(self, index: int) -> PlaylistItem | None:
    if 0 <= index < len(self.items):
      return self.items[index]
    return None

  def find_index_by_id(self, item_id: str) -> int | None:
    for i, item in enumerate(self.items):
      if item.id == item_id:
        return i
    return None
