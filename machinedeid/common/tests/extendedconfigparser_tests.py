"""
machinedeid/common/tests/extendedconfigparser_tests.py

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

from machinedeid.common.extendedconfigparser import (
    ExtendedConfigParser,
    gen_lines,
)


# =============================================================================
# Unit tests
# =============================================================================


class ExtendedConfigParserTests(TestCase):
    def setUp(self) -> None:
        self.parser = ExtendedConfigParser(case_sensitive=True)
        self.parser.read_string(
            "[s]\n"
            "Name = value  # comment\n"
            "fmt = %Y-%m-%d\n"
            "lines =\n"
            "    First Name\n"
            "\n"
            "    Last Name  ; comment\n"
            "formats =\n"
            "    Exam Date | %d/%m/%Y\n"
            "    DOB\n"
            "flag = yes\n"
            "notbool = perhaps\n"
        )

    def test_gen_lines(self) -> None:
        self.assertEqual(list(gen_lines("\n a b \n\n c\n")), ["a b", "c"])

    def test_get_str(self) -> None:
        self.assertEqual(self.parser.get_str("s", "Name"), "value")
        self.assertIsNone(self.parser.get_str("s", "name"))
        self.assertEqual(self.parser.get_str("s", "fmt"), "%Y-%m-%d")
        self.assertEqual(self.parser.get_str("s", "x", default="d"), "d")
        with self.assertRaises(ValueError):
            self.parser.get_str("s", "x", required=True)

    def test_get_lines(self) -> None:
        self.assertEqual(
            self.parser.get_lines("s", "lines"), ["First Name", "Last Name"]
        )
        self.assertEqual(self.parser.get_lines("s", "absent"), [])
        with self.assertRaises(ValueError):
            self.parser.get_lines("s", "absent", required=True)

    def test_get_mapping(self) -> None:
        self.assertEqual(
            self.parser.get_mapping("s", "formats", "|"),
            {"Exam Date": "%d/%m/%Y", "DOB": None},
        )
        self.assertEqual(self.parser.get_mapping("s", "absent", "|"), {})

    def test_get_mapping_rejects_bad_keys(self) -> None:
        p = ExtendedConfigParser(case_sensitive=True)
        p.read_string("[s]\ntwice =\n    A | x\n    A\nblank =\n    | x\n")
        with self.assertRaises(ValueError):
            p.get_mapping("s", "twice", "|")
        with self.assertRaises(ValueError):
            p.get_mapping("s", "blank", "|")

    def test_get_bool(self) -> None:
        self.assertTrue(self.parser.get_bool("s", "flag"))
        self.assertFalse(self.parser.get_bool("s", "absent", default=False))
        with self.assertRaises(ValueError):
            self.parser.get_bool("s", "absent")
        with self.assertRaises(ValueError):
            self.parser.get_bool("s", "notbool")

    def test_require_section(self) -> None:
        self.parser.require_section("s")
        with self.assertRaises(ValueError):
            self.parser.require_section("t")
