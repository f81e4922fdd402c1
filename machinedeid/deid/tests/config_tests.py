"""
machinedeid/deid/tests/config_tests.py

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

import configparser

from machinedeid.common.extendedconfigparser import ExtendedConfigParser
from machinedeid.deid.columns import ColumnAction
from machinedeid.deid.config import (
    crosswalk_from_config,
    deid_config_from_section,
    DEMO_CONFIG,
    filename_pattern_from_section,
    get_time_columns,
    read_config_file,
)
from machinedeid.deid.errors import ConfigurationError
from machinedeid.deid.timeformats import DateFormat, DateTimeFormat
from machinedeid.testing.classes import DeidTestCase


def parse(text: str) -> ExtendedConfigParser:
    parser = ExtendedConfigParser(case_sensitive=True)
    parser.read_string(text)
    return parser


# =============================================================================
# Unit tests
# =============================================================================


class DemoConfigTests(DeidTestCase):
    def test_demo_config_sections(self) -> None:
        parser = parse(DEMO_CONFIG)
        pentacam = deid_config_from_section(parser, "pentacam")
        self.assertEqual(pentacam.identifier_column, "Pat-ID:")
        self.assertEqual(
            pentacam.columns_to_remove,
            ["Last Name:", "First Name:", "D.o.Birth:"],
        )
        self.assertEqual(pentacam.columns_to_blank, ["Exam Comment:"])
        self.assertEqual(
            pentacam.rule("Exam Date:").timeformat, DateFormat("%m/%d/%Y")
        )
        self.assertEqual(
            filename_pattern_from_section(parser, "pentacam"), r".+\.csv$"
        )

        raw = deid_config_from_section(parser, "spectralis_raw")
        self.assertEqual(raw.separator, "\t")
        self.assertEqual(raw.output_separator, "\t")
        self.assertEqual(
            raw.rule("timeoftest").timeformat, DateTimeFormat("%y%m%d%H%M%S")
        )
        self.assertEqual(
            raw.rule("timeoftestEpoch").action, ColumnAction.SHIFT_EPOCH
        )

    def test_crosswalk_section_is_not_a_file_type(self) -> None:
        with self.assertRaises(ValueError):
            deid_config_from_section(parse(DEMO_CONFIG), "crosswalk")


class FileTypeSectionTests(DeidTestCase):
    def test_time_columns(self) -> None:
        parser = parse(
            "[x]\n"
            "date_columns =\n"
            "    Exam Date\n"
            "    Birth Date | %d.%m.%Y\n"
        )
        self.assertEqual(
            get_time_columns(parser, "x", "date_columns"),
            {"Exam Date": None, "Birth Date": "%d.%m.%Y"},
        )

    def test_defaults(self) -> None:
        config = deid_config_from_section(
            parse("[x]\nidentifier_column = MRN\n"), "x"
        )
        self.assertEqual(config.identifier_column, "MRN")
        self.assertEqual(config.separator, ",")
        self.assertEqual(config.rules, {})
        self.assertIsNone(config.compare_numeric)

    def test_compare_numeric(self) -> None:
        config = deid_config_from_section(
            parse("[x]\nidentifier_column = MRN\ncompare_numeric = no\n"), "x"
        )
        self.assertIs(config.compare_numeric, False)

    def test_missing_identifier_column(self) -> None:
        with self.assertRaises(ValueError):
            deid_config_from_section(parse("[x]\nremove = a\n"), "x")

    def test_missing_section(self) -> None:
        with self.assertRaises(ValueError):
            deid_config_from_section(parse("[x]\n"), "y")

    def test_conflict(self) -> None:
        parser = parse(
            "[x]\n"
            "identifier_column = id\n"
            "remove = dob\n"
            "date_columns = dob\n"
        )
        with self.assertRaises(ConfigurationError):
            deid_config_from_section(parser, "x")

    def test_column_twice(self) -> None:
        parser = parse(
            "[x]\n"
            "identifier_column = id\n"
            "date_columns =\n"
            "    dob\n"
            "    dob | %Y%m%d\n"
        )
        with self.assertRaises(ValueError):
            deid_config_from_section(parser, "x")

    def test_case_sensitive_options_and_no_interpolation(self) -> None:
        parser = parse(
            "[x]\nidentifier_column = ID\ndate_format = %d/%m/%Y\n"
            "date_columns = DoB\n"
        )
        config = deid_config_from_section(parser, "x")
        self.assertEqual(config.rule("DoB").timeformat, DateFormat("%d/%m/%Y"))


class CrosswalkSectionTests(DeidTestCase):
    def test_crosswalk_from_config(self) -> None:
        tokens = self.write_file("t.tsv", "mrn\ttok\n007\tA\n8\tB\n")
        offsets = self.write_file("o.tsv", "mrn\tdays\n7\t2\n8\t-2\n")
        parser = parse(
            f"[crosswalk]\n"
            f"token_file = {tokens}\n"
            f"token_identifier_column = mrn\n"
            f"token_column = tok\n"
            f"offset_file = {offsets}\n"
            f"offset_identifier_column = mrn\n"
            f"offset_column = days\n"
            f"separator = tab\n"
        )
        cw = crosswalk_from_config(parser)
        self.assertTrue(cw.compare_numeric)
        self.assertEqual(cw.lookup("7").token, "A")
        self.assertEqual(cw.lookup("8").day_offset, -2)

    def test_overrides(self) -> None:
        tokens = self.write_file("t.csv", "PAT_MRN,PAT_MRN_T\n007,A\n")
        other = self.write_file("u.csv", "PAT_MRN,PAT_MRN_T\n007,Z\n")
        parser = parse(
            f"[crosswalk]\ntoken_file = {tokens}\ncompare_numeric = true\n"
        )
        cw = crosswalk_from_config(
            parser, token_file=other, compare_numeric=False
        )
        self.assertFalse(cw.compare_numeric)
        self.assertEqual(cw.lookup("007").token, "Z")
        self.assertIsNone(cw.lookup("7"))

    def test_no_files(self) -> None:
        with self.assertRaises(ConfigurationError):
            crosswalk_from_config(parse("[crosswalk]\n"))

    def test_read_config_file(self) -> None:
        filename = self.write_file("deid.ini", DEMO_CONFIG)
        parser = read_config_file(filename)
        self.assertIn("pentacam", parser.sections())
        with self.assertRaises(ValueError):
            read_config_file(filename + ".nonexistent")

    def test_duplicate_option_rejected(self) -> None:
        with self.assertRaises(configparser.DuplicateOptionError):
            parse("[x]\nremove = a\nremove = b\n")
