import re
from typing import Any, Optional

from bookvault.database import SQLITE_INT_MAX, SQLITE_INT_MIN


class TextValidator:
    """Basic text checks for required book fields."""

    @staticmethod
    def is_blank(text: Optional[str]) -> bool:
        return text is None or not str(text).strip()

    @staticmethod
    def validate_title(title: Optional[str]) -> bool:
        return not TextValidator.is_blank(title)

    @staticmethod
    def validate_author(author: Optional[str]) -> bool:
        return not TextValidator.is_blank(author)


class ValueCoercer:
    """Loose conversions for values coming from external JSON documents."""

    _YEAR_RE = re.compile(r"^\s*(-?\d{1,4})")

    @staticmethod
    def to_year(value: Any) -> Optional[int]:
        """Extract a year from an int, or from date-like strings such as ``1965-08-01``.

        Values that do not fit a SQLite INTEGER are treated as unusable.
        """
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, int):
            year = value
        elif isinstance(value, float):
            if not value.is_integer():
                return None
            year = int(value)
        else:
            m = ValueCoercer._YEAR_RE.match(str(value))
            if not m:
                return None
            year = int(m.group(1))
        return year if SQLITE_INT_MIN <= year <= SQLITE_INT_MAX else None

    @staticmethod
    def to_rating(value: Any) -> Optional[float]:
        if value is None or isinstance(value, bool):
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None

    @staticmethod
    def to_text(value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None
