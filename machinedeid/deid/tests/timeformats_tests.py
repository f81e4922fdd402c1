"""
machinedeid/deid/tests/timeformats_tests.py

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

Unit testing.

"""

# =============================================================================
# Imports
# =============================================================================

from unittest import TestCase

from pendulum import Date

from machinedeid.deid.errors import ConfigurationError
from machinedeid.deid.timeformats import (
    DateFormat,
    DateTimeFormat,
    parse_epoch,
    shift_epoch,
    tokenize_format,
    year_from_two_digits,
)


# =============================================================================
# Unit tests
# =============================================================================


class FormatCompilerTests(TestCase):
    def test_tokenize(self) -> None:
        tokens = tokenize_format("%Y-%m-%d")
        self.assertEqual(len(tokens), 5)
        self.assertEqual(tokens[1], "-")
        self.assertEqual(tokens[0].code, "%Y")

    def test_fractional_seconds_code_preferred(self) -> None:
        tokens = tokenize_format("%H:%M:%OS")
        self.assertEqual(tokens[-1].code, "%OS")
        self.assertTrue(tokens[-1].fractional)

    def test_unsupported(self) -> None:
        for fmt in ("%Y-%b-%d", "%d/%m/%Y %p", "%Y%m%dZ", "%Y-%m-%d%%"):
            with self.assertRaises(ConfigurationError, msg=fmt):
                DateTimeFormat(fmt)

    def test_repeated_component(self) -> None:
        with self.assertRaises(ConfigurationError):
            DateFormat("%Y-%m-%d-%y")

    def test_incomplete(self) -> None:
        with self.assertRaises(ConfigurationError):
            DateFormat("%Y-%m")
        with self.assertRaises(ConfigurationError):
            DateTimeFormat("%H:%M:%S")

    def test_date_format_rejects_time(self) -> None:
        with self.assertRaises(ConfigurationError):
            DateFormat("%Y%m%d%H%M")
        DateTimeFormat("%Y%m%d%H%M")  # fine

    def test_compact(self) -> None:
        self.assertTrue(DateTimeFormat("%y%m%d%H%M%S").compact)
        self.assertEqual(DateTimeFormat("%y%m%d%H%M%S").width, 12)
        self.assertFalse(DateFormat("%Y-%m-%d").compact)

    def test_two_digit_years(self) -> None:
        self.assertEqual(year_from_two_digits(0), 2000)
        self.assertEqual(year_from_two_digits(68), 2068)
        self.assertEqual(year_from_two_digits(69), 1969)
        self.assertEqual(year_from_two_digits(99), 1999)


class DateShiftTests(TestCase):
    def test_iso(self) -> None:
        fmt = DateFormat("%Y-%m-%d")
        self.assertEqual(fmt.shift("2020-01-02", 4), "2020-01-06")
        self.assertEqual(fmt.shift("2020-01-02", -2), "2019-12-31")
        self.assertEqual(fmt.shift("2020-02-28", 1), "2020-02-29")
        self.assertEqual(fmt.shift("2020-01-02", 0), "2020-01-02")

    def test_parse(self) -> None:
        self.assertEqual(
            DateFormat("%Y-%m-%d").parse("2020-01-02"), Date(2020, 1, 2)
        )

    def test_unpadded_separated_fields(self) -> None:
        fmt = DateFormat("%m/%d/%Y")
        self.assertEqual(fmt.shift("1/2/2020", 4), "2020-01-06")
        self.assertEqual(fmt.shift("12/31/1999", 1), "2000-01-01")

    def test_compact(self) -> None:
        fmt = DateFormat("%Y%m%d")
        self.assertEqual(fmt.shift("20200102", 4), "2020-01-06")
        # Compact fields need their full width, and dates aren't padded.
        self.assertIsNone(fmt.shift("2020-01-02", 4))
        self.assertIsNone(fmt.shift("2020102", 0))

    def test_trailing_text_ignored(self) -> None:
        fmt = DateFormat("%m/%d/%Y")
        self.assertEqual(fmt.shift("1/2/2020 0:00", 4), "2020-01-06")
        self.assertEqual(
            DateFormat("%Y-%m-%d").shift("2020-01-02 10:00", 4), "2020-01-06"
        )
        # ... but not a longer number.
        self.assertIsNone(fmt.shift("1/2/20201", 4))
        self.assertIsNone(DateFormat("%Y%m%d").shift("202001021", 4))

    def test_whitespace(self) -> None:
        self.assertEqual(
            DateFormat("%Y-%m-%d").shift("  2020-01-02 ", 4), "2020-01-06"
        )

    def test_missing_and_unparseable(self) -> None:
        fmt = DateFormat("%Y-%m-%d")
        self.assertIsNone(fmt.shift(None, 4))
        self.assertIsNone(fmt.shift("", 4))
        self.assertIsNone(fmt.shift("not a date", 4))
        self.assertIsNone(fmt.shift("2020-02-30", 4))
        self.assertIsNone(fmt.shift("2020-01-02", None))

    def test_two_digit_year(self) -> None:
        fmt = DateFormat("%d.%m.%y")
        self.assertEqual(fmt.shift("31.12.68", 1), "2069-01-01")
        self.assertEqual(fmt.shift("31.12.69", 1), "1970-01-01")


class DateTimeShiftTests(TestCase):
    def test_default_format(self) -> None:
        fmt = DateTimeFormat("%Y-%m-%d %H:%M:%OS")
        self.assertEqual(
            fmt.shift("2020-01-02 03:04:05", 4), "2020-01-06 03:04:05"
        )
        # Fractional seconds are accepted, and dropped.
        self.assertEqual(
            fmt.shift("2020-01-02 03:04:05.75", 4), "2020-01-06 03:04:05"
        )

    def test_no_daylight_saving_skew(self) -> None:
        # The US changed its clocks on 2020-03-08, and the UK on 2020-03-29.
        fmt = DateTimeFormat("%Y-%m-%d %H:%M:%S")
        self.assertEqual(
            fmt.shift("2020-03-07 23:30:00", 1), "2020-03-08 23:30:00"
        )
        self.assertEqual(
            fmt.shift("2020-03-28 01:30:00", 1), "2020-03-29 01:30:00"
        )
        self.assertEqual(
            fmt.shift("2020-10-25 01:30:00", -1), "2020-10-24 01:30:00"
        )

    def test_iso_t(self) -> None:
        fmt = DateTimeFormat("%Y-%m-%dT%H:%M:%S")
        self.assertEqual(
            fmt.shift("2021-12-31T23:59:59", 1), "2022-01-01 23:59:59"
        )

    def test_compact_with_lost_leading_zeros(self) -> None:
        fmt = DateTimeFormat("%y%m%d%H%M%S")
        self.assertEqual(
            fmt.shift("230105143000", 2), "2023-01-07 14:30:00"
        )
        # 2009-01-02 08:30:00, stored as a number somewhere.
        self.assertEqual(
            fmt.shift("90102083000", 1), "2009-01-03 08:30:00"
        )

    def test_compact_without_seconds(self) -> None:
        fmt = DateTimeFormat("%y%m%d%H%M")
        self.assertEqual(fmt.shift("2301051430", -5), "2022-12-31 14:30:00")

    def test_date_only_datetime(self) -> None:
        fmt = DateTimeFormat("%Y%m%d")
        self.assertEqual(fmt.shift("20200102", 1), "2020-01-03 00:00:00")

    def test_missing_and_unparseable(self) -> None:
        fmt = DateTimeFormat("%Y-%m-%d %H:%M:%S")
        self.assertIsNone(fmt.shift(None, 1))
        self.assertIsNone(fmt.shift("2020-01-02 03:04", 1))
        self.assertIsNone(fmt.shift("2020-01-02 25:00:00", 1))
        self.assertIsNone(fmt.shift("2020-01-02", 1))
        self.assertIsNone(fmt.shift("yesterday", 1))
        self.assertIsNone(fmt.shift("2020-01-02 03:04:05", None))


class EpochShiftTests(TestCase):
    def test_integer(self) -> None:
        self.assertEqual(shift_epoch("1700000000", 2), "1700172800")
        self.assertEqual(shift_epoch("1700000000", -1), "1699913600")

    def test_fractional(self) -> None:
        self.assertEqual(shift_epoch("1700000000.25", 1), "1700086400.25")

    def test_exact_for_large_values(self) -> None:
        self.assertEqual(
            shift_epoch("17000000000000000001", 1), "17000000000000086401"
        )

    def test_missing_and_unparseable(self) -> None:
        self.assertIsNone(shift_epoch(None, 1))
        self.assertIsNone(shift_epoch("", 1))
        self.assertIsNone(shift_epoch("soon", 1))
        self.assertIsNone(shift_epoch("NaN", 1))
        self.assertIsNone(shift_epoch("1700000000", None))
        self.assertIsNone(parse_epoch("1_700_000_000"))
