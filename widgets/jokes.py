# widgets/jokes.py
#
# Short jokes that fit on the board. Picked at random on every call.

import random
from typing import Any

import message

_JOKES: tuple[str, ...] = (
  'why did the scarecrow win an award? he was outstanding in his field.',
  "i'm reading a book about anti-gravity. it's impossible to put down.",
  'what do you call fake spaghetti? an impasta.',
  "why don't skeletons fight each other? they don't have the guts.",
  'what do you call a bear with no teeth? a gummy bear.',
  'why did the bicycle fall over? it was two tired.',
  'what did the ocean say to the beach? nothing, it just waved.',
  "i used to be a banker but i lost interest.",
  'why do cows wear bells? because their horns don\'t work.',
  'what do you call a fish with no eyes? a fsh.',
)


def get_joke(input: Any = None) -> list[str]:
  return message.format_message(random.choice(_JOKES))  # nosec B311
