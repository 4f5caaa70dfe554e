"""Anonymous handle generation (``LL-NN 🐼🌱``).

Handles are drawn at random and never checked against existing ones, so two
users may end up sharing a handle. They stand in for identity in public posts,
they are not identifiers.
"""

from __future__ import annotations

import random
import string
from typing import Optional, Sequence

from .models import Pseudonym


CREATURE_EMOJI: Sequence[str] = ("🐼", "🦊", "🐰", "🦆", "🐸", "🦋", "🐝", "🐧", "🐨", "🦘")
FLORA_EMOJI: Sequence[str] = ("🌱", "🌿", "🌸", "🌺", "🌻", "🌲", "🎋", "🌴", "🍀", "🌵")


def generate_handle(rng: Optional[random.Random] = None) -> str:
    rng = rng or random.Random()
    letters = rng.choice(string.ascii_uppercase) + rng.choice(string.ascii_uppercase)
    number = rng.randint(1, 99)
    return f"{letters}-{number} {rng.choice(CREATURE_EMOJI)}{rng.choice(FLORA_EMOJI)}"


def pseudonym_from_handle(handle: str, cohort_label: Optional[str] = None) -> Pseudonym:
    """Split the emoji pair back out of a generated handle."""

    _, _, emoji = handle.partition(" ")
    return Pseudonym(
        handle=handle,
        emoji1=emoji[:1],
        emoji2=emoji[1:2],
        cohort_label=cohort_label,
    )


def build_pseudonym(rng: Optional[random.Random] = None, cohort_label: Optional[str] = None) -> Pseudonym:
    return pseudonym_from_handle(generate_handle(rng), cohort_label=cohort_label)


__all__ = [
    "CREATURE_EMOJI",
    "FLORA_EMOJI",
    "generate_handle",
    "build_pseudonym",
    "pseudonym_from_handle",
]
