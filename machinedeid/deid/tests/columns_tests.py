"""
machinedeid/deid/tests/columns_tests.py

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

from machinedeid.deid.columns import (
    ColumnAction,
    DeidConfig,
    resolve_separator,
)
from machinedeid.deid.errors import ConfigurationError
from machinedeid.deid.timeformats import DateFormat, DateTimeFormat


# =============================================================================
# Unit tests
# =============================================================================


class SeparatorTests(TestCase):
    def test_names(self) -> None:
        self.assertEqual(resolve_separator("tab"), "\t")
        self.assertEqual(resolve_separator("TAB"), "\t")
        self.assertEqual(resolve_separator("comma"), ",")
        self.assertEqual(resolve_separator("\\t"), "\t")
        self.assertEqual(resolve_separator(";"), ";")
        self.assertEqual(resolve_separator("\t"), "\t")

    def test_bad(self) -> None:
        for value in (None, "", ",,", "spaces"):
            with self.assertRaises(ConfigurationError, msg=repr(value)):
                resolve_separator(value)


class DeidConfigTests(TestCase):
    def test_rules(self) -> None:
        config = DeidConfig(
            identifier_column="id",
            columns_to_remove=["name", "address"],
            columns_to_blank="comment",
            date_columns={"dob": "%Y%m%d"},
            datetime_columns=["seen"],
            epoch_columns=["epoch"],
            separator="tab",
        )
        self.assertEqual(config.columns_to_remove, ["name", "address"])
        self.assertEqual(config.columns_to_blank, ["comment"])
        self.assertEqual(config.rule("dob").action, ColumnAction.SHIFT_DATE)
        self.assertEqual(config.rule("dob").timeformat, DateFormat("%Y%m%d"))
        self.assertEqual(
            config.rule("seen").timeformat,
            DateTimeFormat("%Y-%m-%d %H:%M:%OS"),
        )
        self.assertEqual(config.rule("epoch").action, ColumnAction.SHIFT_EPOCH)
        self.assertIsNone(config.rule("epoch").timeformat)
        self.assertEqual(
            config.rule("anything_else").action, ColumnAction.PASSTHROUGH
        )
        self.assertEqual(config.shift_columns, ["dob", "seen", "epoch"])
        self.assertTrue(config.requires_day_offsets)
        self.assertEqual(config.separator, "\t")
        self.assertEqual(config.output_separator, "\t")
        self.assertIsNone(config.compare_numeric)
        self.assertIn("dob", repr(config))

    def test_default_formats(self) -> None:
        config = DeidConfig(
            "id",
            date_columns=["a", "b"],
            date_format="%d/%m/%Y",
            datetime_columns={"c": None},
            datetime_format="%Y%m%d%H%M",
        )
        self.assertEqual(config.rule("b").timeformat, DateFormat("%d/%m/%Y"))
        self.assertEqual(
            config.rule("c").timeformat, DateTimeFormat("%Y%m%d%H%M")
        )

    def test_no_shifts(self) -> None:
        config = DeidConfig("id", columns_to_remove=["x"])
        self.assertFalse(config.requires_day_offsets)

    def test_repeated_name_in_one_list(self) -> None:
        config = DeidConfig("id", columns_to_remove=["x", "x"])
        self.assertEqual(config.columns_to_remove, ["x"])

    def test_column_in_two_categories(self) -> None:
        with self.assertRaises(ConfigurationError):
            DeidConfig("id", columns_to_remove=["x"], columns_to_blank=["x"])
        with self.assertRaises(ConfigurationError):
            DeidConfig("id", date_columns=["x"], epoch_columns=["x"])

    def test_identifier_in_a_category(self) -> None:
        with self.assertRaises(ConfigurationError):
            DeidConfig("id", columns_to_remove=["id"])
        with self.assertRaises(ConfigurationError):
            DeidConfig("id", columns_to_blank=["id"])

    def test_bad_format(self) -> None:
        with self.assertRaises(ConfigurationError):
            DeidConfig("id", date_columns={"dob": "%d %B %Y"})

    def test_no_identifier(self) -> None:
        with self.assertRaises(ConfigurationError):
            DeidConfig("")

    def test_output_separator(self) -> None:
        config = DeidConfig("id", separator=",", output_separator="tab")
        self.assertEqual(config.separator, ",")
        self.assertEqual(config.output_separator, "\t")
