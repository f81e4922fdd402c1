"""
machinedeid/deid/timeformats.py

===============================================================================

    Copyright (C) 2023, the MachineDeID authors.

    This file is part of MachineDeID.

    MachineDeID is free software: you can redistribute it and/or modify
    it under the terms of the GNU General Public License as published by
    the Free Software Foundation, either version 3 of the License, or
    (at your option) any later version.

    MachineDeID is distributed in the hope that it will be useful,
    but WITHOUT ANY WARRANTY; without even the implied warranty of
    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
    GNU General Public License for more details.

    You should have received a copy of the GNU General Public License
    along with MachineDeID. If not, see <https://www.gnu.org/licenses/>.

===============================================================================

**Date, date/time, and epoch-time formats, and date shifting.**

Device exports store times in many ways. We support a deliberately small,
auditable, subset of ``strftime``-style directives:

=========== ================================================================
Directive   Meaning
=========== ================================================================
``%Y``      4-digit year
``%y``      2-digit year; 69-99 mean 1969-1999, 00-68 mean 2000-2068
``%m``      2-digit month
``%d``      2-digit day of the month
``%H``      2-digit hour (24-hour clock)
``%M``      2-digit minute
``%S``      2-digit second
``%OS``     2-digit second, optionally followed by a fraction, e.g. ``05.25``
=========== ================================================================

between which these literal separators may appear: ``-``, ``/``, ``:``,
``.``, ``_``, ``,``, ``T``, and space.

Parsing rules:

- A numeric field that has a separator (or the start/end of the value) on
  both sides may have 1 up to its full width of digits, so ``1/2/2020``
  parses with ``%m/%d/%Y``. A field run together with another field needs
  exactly its full width.

- For "compact" date/time formats, with no separators at all (e.g.
  ``%Y%m%d%H%M%S``), a value that is all digits but shorter than the
  format's width is left-padded with zeros before parsing. Such values are
  often stored as integers somewhere upstream and lose leading zeros, e.g. a
  2-digit year of ``09`` or an hour of ``08``. Compact date formats are not
  padded; a short date is unparseable.

- Surrounding whitespace is ignored. The value must start with a match for
  the format; text after that is ignored (as by ``strptime``), so
  ``1/2/2020 0:00`` parses with ``%m/%d/%Y``, unless it continues the last
  number. A value that does not match is unparseable, and gives a missing
  result.

Date/time arithmetic is done in UTC (via ``pendulum``), so adding whole days
never meets a daylight saving time transition.

"""

from decimal import Decimal, InvalidOperation
import logging
from typing import Dict, List, NamedTuple, Optional, Union

import pendulum
from pendulum import Date, DateTime
import regex

from machinedeid.deid.constants import SECONDS_PER_DAY
from machinedeid.deid.errors import ConfigurationError

log = logging.getLogger(__name__)


# =============================================================================
# Format directives
# =============================================================================


class TimeComponent:
    YEAR = "year"
    YEAR_2_DIGIT = "year2"  # converted to YEAR
    MONTH = "month"
    DAY = "day"
    HOUR = "hour"
    MINUTE = "minute"
    SECOND = "second"


class Directive(NamedTuple):
    """
    A format directive, such as ``%Y``.
    """

    code: str
    component: str
    width: int
    fractional: bool = False


# Longest first, so "%OS" is matched before any shorter code.
DIRECTIVES = [
    Directive("%OS", TimeComponent.SECOND, 2, fractional=True),
    Directive("%Y", TimeComponent.YEAR, 4),
    Directive("%y", TimeComponent.YEAR_2_DIGIT, 2),
    Directive("%m", TimeComponent.MONTH, 2),
    Directive("%d", TimeComponent.DAY, 2),
    Directive("%H", TimeComponent.HOUR, 2),
    Directive("%M", TimeComponent.MINUTE, 2),
    Directive("%S", TimeComponent.SECOND, 2),
]

LITERAL_SEPARATORS = "-/:._, T"

DATE_COMPONENTS = {
    TimeComponent.YEAR,
    TimeComponent.YEAR_2_DIGIT,
    TimeComponent.MONTH,
    TimeComponent.DAY,
}
FRACTION_GROUP = "fraction"

# POSIX strptime convention for %y (R and Python agree).
TWO_DIGIT_YEAR_PIVOT = 69


def year_from_two_digits(yy: int) -> int:
    """
    Converts a 2-digit year to a 4-digit one: 69-99 are in the 20th century
    and 00-68 are in the 21st.
    """
    if yy >= TWO_DIGIT_YEAR_PIVOT:
        return 1900 + yy
    return 2000 + yy


def tokenize_format(fmt: str) -> List[Union[Directive, str]]:
    """
    Splits a format string into directives and literal separator characters.

    Raises:
        :exc:`ConfigurationError` for unsupported content, or a component
        that appears twice.
    """
    tokens = []  # type: List[Union[Directive, str]]
    seen = set()
    i = 0
    while i < len(fmt):
        for directive in DIRECTIVES:
            if fmt.startswith(directive.code, i):
                component = directive.component
                if component == TimeComponent.YEAR_2_DIGIT:
                    component = TimeComponent.YEAR
                if component in seen:
                    raise ConfigurationError(
                        f"Time format {fmt!r}: component {component!r} "
                        f"appears more than once"
                    )
                seen.add(component)
                tokens.append(directive)
                i += len(directive.code)
                break
        else:
            c = fmt[i]
            if c not in LITERAL_SEPARATORS:
                raise ConfigurationError(
                    f"Time format {fmt!r}: unsupported content at position "
                    f"{i}: {fmt[i:]!r}"
                )
            tokens.append(c)
            i += 1
    return tokens


# =============================================================================
# Compiled formats
# =============================================================================


class TimeFormat:
    """
    A compiled date or date/time format. Use :class:`DateFormat` or
    :class:`DateTimeFormat`.
    """

    date_only = False
    pads_compact = False

    def __init__(self, fmt: str) -> None:
        """
        Args:
            fmt:
                Format string, e.g. ``"%Y-%m-%d"``.

        Raises:
            :exc:`ConfigurationError` if the format is not supported.
        """
        self.fmt = fmt
        self.tokens = tokenize_format(fmt)
        directives = [t for t in self.tokens if isinstance(t, Directive)]
        components = {d.component for d in directives}
        if TimeComponent.YEAR_2_DIGIT in components:
            components.add(TimeComponent.YEAR)
        missing = {
            TimeComponent.YEAR,
            TimeComponent.MONTH,
            TimeComponent.DAY,
        } - components
        if missing:
            raise ConfigurationError(
                f"Time format {fmt!r} lacks components: {sorted(missing)}"
            )
        if self.date_only and not components <= DATE_COMPONENTS:
            raise ConfigurationError(
                f"Date format {fmt!r} contains time components; use it as a "
                f"date/time format instead"
            )
        self.compact = all(isinstance(t, Directive) for t in self.tokens)
        self.width = sum(d.width for d in directives)
        self.regex = regex.compile(self._mk_regex_str())

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.fmt!r})"

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self.fmt == other.fmt

    def __hash__(self) -> int:
        return hash((type(self), self.fmt))

    def _mk_regex_str(self) -> str:
        parts = []  # type: List[str]
        n = len(self.tokens)
        for i, token in enumerate(self.tokens):
            if not isinstance(token, Directive):
                parts.append(regex.escape(token))
                continue
            delimited_before = i == 0 or not isinstance(
                self.tokens[i - 1], Directive
            )
            delimited_after = i == n - 1 or not isinstance(
                self.tokens[i + 1], Directive
            )
            if delimited_before and delimited_after:
                digits = rf"[0-9]{{1,{token.width}}}"
            else:
                digits = rf"[0-9]{{{token.width}}}"
            parts.append(f"(?P<{token.component}>{digits})")
            if token.fractional:
                parts.append(rf"(?:\.(?P<{FRACTION_GROUP}>[0-9]+))?")
        # Trailing text is ignored, as by strptime, unless it continues a
        # number.
        return "^" + "".join(parts) + "(?![0-9])"

    def pad(self, text: str) -> str:
        """
        For compact formats that allow it, left-pads an all-digit value with
        zeros to the width of the format (ignoring any fractional seconds).
        Other values are returned unchanged.
        """
        if not (self.compact and self.pads_compact):
            return text
        integer_part, dot, fraction = text.partition(".")
        if integer_part.isdigit() and len(integer_part) < self.width:
            return integer_part.zfill(self.width) + dot + fraction
        return text

    def match_components(
        self, text: Optional[str]
    ) -> Optional[Dict[str, int]]:
        """
        Matches a value to this format.

        Returns:
            a dictionary mapping :class:`TimeComponent` names to integers
            (with ``year`` always 4-digit, and a ``microsecond`` entry), or
            ``None`` if the value is missing or does not match
        """
        if text is None:
            return None
        text = self.pad(text.strip())
        m = self.regex.match(text)
        if not m:
            return None
        groups = m.groupdict()
        fraction = groups.pop(FRACTION_GROUP, None)
        components = {k: int(v) for k, v in groups.items() if v is not None}
        if TimeComponent.YEAR_2_DIGIT in components:
            components[TimeComponent.YEAR] = year_from_two_digits(
                components.pop(TimeComponent.YEAR_2_DIGIT)
            )
        components["microsecond"] = (
            int(fraction[:6].ljust(6, "0")) if fraction else 0
        )
        return components


class DateFormat(TimeFormat):
    """
    A compiled date format, with year, month and day only.
    """

    date_only = True

    def parse(self, text: Optional[str]) -> Optional[Date]:
        """
        Parses a date, returning ``None`` if it is missing or invalid.
        """
        c = self.match_components(text)
        if c is None:
            return None
        try:
            return Date(
                c[TimeComponent.YEAR],
                c[TimeComponent.MONTH],
                c[TimeComponent.DAY],
            )
        except ValueError:  # e.g. 31 February
            return None

    def shift(self, text: Optional[str], days: Optional[int]) -> Optional[str]:
        """
        Parses a date, adds a number of days, and returns it in
        ``YYYY-MM-DD`` format. Returns ``None`` if the value is missing or
        unparseable, if ``days`` is ``None``, or if the result is out of
        range.
        """
        if days is None:
            return None
        d = self.parse(text)
        if d is None:
            return None
        try:
            shifted = d.add(days=days)
        except (OverflowError, ValueError):
            return None
        return format_date(shifted)


class DateTimeFormat(TimeFormat):
    """
    A compiled date/time format. Time components that are absent from the
    format (e.g. seconds) are taken as zero.
    """

    # Compact date/times stored as numbers may have lost leading zeros.
    pads_compact = True

    def parse(self, text: Optional[str]) -> Optional[DateTime]:
        """
        Parses a date/time as a UTC wall-clock time, returning ``None`` if it
        is missing or invalid.
        """
        c = self.match_components(text)
        if c is None:
            return None
        try:
            return pendulum.datetime(
                c[TimeComponent.YEAR],
                c[TimeComponent.MONTH],
                c[TimeComponent.DAY],
                c.get(TimeComponent.HOUR, 0),
                c.get(TimeComponent.MINUTE, 0),
                c.get(TimeComponent.SECOND, 0),
                c["microsecond"],
                tz=pendulum.UTC,
            )
        except ValueError:  # e.g. 25:00
            return None

    def shift(self, text: Optional[str], days: Optional[int]) -> Optional[str]:
        """
        Parses a date/time, adds ``86400 * days`` seconds (in UTC, so without
        daylight saving time discontinuities), and returns it in
        ``YYYY-MM-DD HH:MM:SS`` format, with no time zone and without
        fractional seconds. Returns ``None`` under the same conditions as
        :meth:`DateFormat.shift`.
        """
        if days is None:
            return None
        dt = self.parse(text)
        if dt is None:
            return None
        try:
            shifted = dt.add(seconds=SECONDS_PER_DAY * days)
        except (OverflowError, ValueError):
            return None
        return format_datetime(shifted)


# =============================================================================
# Output
# =============================================================================


def format_date(d: Date) -> str:
    """
    Formats a date as ``YYYY-MM-DD`` (zero-padded even for years before
    1000, unlike some platforms' ``strftime``).
    """
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def format_datetime(dt: DateTime) -> str:
    """
    Formats a date/time as ``YYYY-MM-DD HH:MM:SS``, truncating any fractional
    seconds.
    """
    return (
        f"{format_date(dt)} {dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}"
    )


# =============================================================================
# Epoch times
# =============================================================================


def parse_epoch(text: Optional[str]) -> Optional[Decimal]:
    """
    Reads a number of seconds since 1970-01-01 00:00:00 UTC (integer or
    fractional), exactly. Returns ``None`` if it is missing or not a finite
    number.
    """
    if text is None:
        return None
    text = text.strip()
    if not text or "_" in text:
        return None
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def shift_epoch(text: Optional[str], days: Optional[int]) -> Optional[str]:
    """
    Adds ``86400 * days`` seconds to an epoch time. There is no parsing into
    a date/time and no time zone; integers remain integers and fractions keep
    their precision.
    """
    if days is None:
        return None
    value = parse_epoch(text)
    if value is None:
        return None
    return format(value + SECONDS_PER_DAY * days, "f")
