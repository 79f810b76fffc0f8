"""
vrai/services/photo_slots.py — The 10-position photo slot array.

Positions 1–9 hold at most one URL each (last write wins); position 10
holds a growable list with de-duplication. Serialised as a 10-element list
``[url|None, ... (9 times), [url, ...]]`` in ``photo_urls``.
"""

from __future__ import annotations

from typing import Any, Iterable

from vrai.exceptions import ValidationError

SLOT_COUNT = 10
SINGLE_SLOTS = 9
MULTI_PHOTO_STEP = 10


def check_step(step: Any) -> int:
    """Coerces a step number and checks it is in [1, 10]."""
    try:
        number = int(step)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Step number must be between 1 and 10", details={"step": step}) from exc
    if number < 1 or number > SLOT_COUNT:
        raise ValidationError("Step number must be between 1 and 10", details={"step": number})
    return number


class PhotoSlots:
    """Mutable slot array of one submission."""

    __slots__ = ("_single", "_extra")

    def __init__(self) -> None:
        self._single: list[str | None] = [None] * SINGLE_SLOTS
        self._extra: list[str] = []

    @classmethod
    def from_list(cls, urls: Iterable[Any] | None) -> "PhotoSlots":
        """Rebuilds slots from a stored ``photo_urls`` value (tolerates short lists)."""
        slots = cls()
        for index, value in enumerate(list(urls or [])[:SLOT_COUNT]):
            if index < SINGLE_SLOTS:
                slots._single[index] = value or None
            elif isinstance(value, (list, tuple)):
                for url in value:
                    if url:
                        slots.add_extra(url)
            elif value:
                slots.add_extra(value)
        return slots

    def assign(self, step: int, url: str) -> None:
        if step == MULTI_PHOTO_STEP:
            self.add_extra(url)
        else:
            self._single[step - 1] = url

    def add_extra(self, url: str) -> bool:
        """Appends to slot 10 unless the URL is already there."""
        if url in self._extra:
            return False
        self._extra.append(url)
        return True

    def get(self, step: int) -> str | None | list[str]:
        if step == MULTI_PHOTO_STEP:
            return list(self._extra)
        return self._single[step - 1]

    def missing_steps(self) -> list[int]:
        return [i + 1 for i, url in enumerate(self._single) if not url]

    def is_complete(self) -> bool:
        """True iff steps 1–9 all hold a URL; step 10 is irrelevant."""
        return not self.missing_steps()

    def flatten(self) -> list[str]:
        return [url for url in self._single if url] + list(self._extra)

    def as_list(self) -> list[str | None | list[str]]:
        return [*self._single, list(self._extra)]

    def __repr__(self) -> str:
        return f"PhotoSlots(filled={SINGLE_SLOTS - len(self.missing_steps())}/9, extra={len(self._extra)})"
