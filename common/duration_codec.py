"""Duration parsing and formatting for timer edit buffers.

Converts the free-text hours/minutes/seconds fields a user edits into a
whole number of seconds, and formats a number of seconds back into
zero-padded two-digit fields.
"""

import re

SECONDS_PER_HOUR = 3600
SECONDS_PER_MINUTE = 60

_UNSIGNED_INT = re.compile(r"\+?[0-9]+")


class ParseError(ValueError):
    """Raised when an edit-buffer field is not a non-negative integer."""

    def __init__(self, field: str, text: str):
        """Initialize ParseError.

        Args:
            field: Name of the offending field (hours, minutes or seconds)
            text: The text that failed to parse
        """
        self.field = field
        self.text = text
        super().__init__(f"Invalid {field} value: {text!r}")


class DurationCodec:
    """Codec between edit-buffer text fields and durations in seconds."""

    @staticmethod
    def parse_field(field: str, text: str) -> int:
        """Parse one field as a base-10 non-negative integer.

        Args:
            field: Field name used in the error message
            text: Text to parse

        Returns:
            The parsed integer

        Raises:
            ParseError: If the text is empty, signed negative, not decimal
                or too long to convert
        """
        if not isinstance(text, str) or not _UNSIGNED_INT.fullmatch(text):
            raise ParseError(field, text)
        try:
            return int(text)
        except ValueError as e:
            # int() refuses digit strings past sys.get_int_max_str_digits()
            raise ParseError(field, text) from e

    @classmethod
    def parse(cls, hours_text: str, minutes_text: str, seconds_text: str) -> int:
        """Parse hour/minute/second text into a total number of seconds.

        Fields are parsed independently; minutes and seconds above 59 are
        accepted and simply add to the total.

        Args:
            hours_text: Hours field text
            minutes_text: Minutes field text
            seconds_text: Seconds field text

        Returns:
            Total duration in whole seconds

        Raises:
            ParseError: If any field is not a valid non-negative integer
        """
        hours = cls.parse_field("hours", hours_text)
        minutes = cls.parse_field("minutes", minutes_text)
        seconds = cls.parse_field("seconds", seconds_text)
        return hours * SECONDS_PER_HOUR + minutes * SECONDS_PER_MINUTE + seconds

    @staticmethod
    def format(total_seconds: int) -> tuple[str, str, str]:
        """Format a duration into zero-padded hour/minute/second fields.

        Hours are never truncated: 100 hours or more simply widens the
        hours field past two digits.

        Args:
            total_seconds: Non-negative duration in whole seconds

        Returns:
            Tuple of (hours, minutes, seconds) text
        """
        if total_seconds < 0:
            raise ValueError(f"Duration must be non-negative, got {total_seconds}")
        total_seconds = int(total_seconds)
        hours, rest = divmod(total_seconds, SECONDS_PER_HOUR)
        minutes, seconds = divmod(rest, SECONDS_PER_MINUTE)
        return f"{hours:02d}", f"{minutes:02d}", f"{seconds:02d}"
