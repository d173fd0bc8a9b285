from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


def next_power_of_two(value: int) -> int:
    if value <= 0:
        raise ValueError("Value must be positive")
    return 1 << (value - 1).bit_length()


def is_power_of_two(value: int) -> bool:
    return value > 0 and value & (value - 1) == 0


def seed_positions(size: int) -> list[int]:
    """Slot index for Seed1..Seed4 in a bracket of ``size`` slots.

    #1 top, #2 bottom, #3 closes the upper half and #4 opens the lower half, so
    the four seeds cannot meet before the semifinals. Brackets smaller than
    four slots only hold the first two seeds.
    """
    if not is_power_of_two(size) or size < 2:
        raise ValueError(f"Bracket size must be a power of two >= 2, got {size}")
    positions = [0, size - 1]
    if size >= 4:
        positions.extend([size // 2 - 1, size // 2])
    return positions


def place_seeds(size: int, seeds: Sequence[T | None]) -> list[T | None]:
    if sum(1 for seed in seeds if seed is not None) < 2:
        raise ValueError("At least two seeds are required")
    if len(seeds) > 4:
        raise ValueError("At most four seeds are supported")
    slots: list[T | None] = [None] * size
    for seed, position in zip(seeds, seed_positions(size), strict=False):
        if seed is not None:
            slots[position] = seed
    return slots


__all__ = ["is_power_of_two", "next_power_of_two", "place_seeds", "seed_positions"]
