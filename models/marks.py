"""
Mark values for normalized report rows.
A raw marks entry is resolved once into NumericMark or MissingMark;
nothing downstream sees the loosely-shaped input.
"""

from dataclasses import dataclass
from typing import Union

from config import Config


@dataclass(frozen=True)
class NumericMark:
    """A mark that is a real number"""
    value: Union[int, float]

    is_missing = False

    def cell(self):
        return self.value


@dataclass(frozen=True)
class MissingMark:
    """Absent, blank or non-numeric mark"""

    is_missing = True

    def cell(self):
        return Config.REPORT_SENTINEL


MISSING = MissingMark()

MarkValue = Union[NumericMark, MissingMark]
