"""Settings that influence which logic paths survive parsing."""

from dataclasses import dataclass
from enum import IntEnum


class Difficulty(IntEnum):
    """Logic difficulty levels, ordered from most to least restrictive."""

    MOKI = 0
    GORLEK = 1
    KII = 2
    UNSAFE = 3

    @classmethod
    def from_keyword(cls, keyword: str) -> "Difficulty | None":
        """Return the difficulty named by a requirement keyword, if any."""
        return cls.__members__.get(keyword.upper())


@dataclass(frozen=True)
class LogicSettings:
    """Configuration passed to the logic parser."""

    difficulty: Difficulty = Difficulty.MOKI

    @classmethod
    def unrestricted(cls) -> "LogicSettings":
        """Settings that keep every path that is possible at all."""
        return cls(difficulty=max(Difficulty))
