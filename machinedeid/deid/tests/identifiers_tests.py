"""
machinedeid/deid/tests/identifiers_tests.py

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

from decimal import Decimal
from unittest import TestCase

from machinedeid.deid.identifiers import (
    identifier_key,
    numeric_identifier,
    text_identifier,
)


# =============================================================================
# Unit tests
# =============================================================================


class IdentifierTests(TestCase):
    def test_numeric(self) -> None:
        self.assertEqual(numeric_identifier("000123"), Decimal(123))
        self.assertEqual(
            numeric_identifier(" 123 "), numeric_identifier("123.0")
        )
        self.assertEqual(
            hash(numeric_identifier("0123")),
            hash(numeric_identifier("123.00")),
        )

    def test_numeric_is_exact(self) -> None:
        self.assertNotEqual(
            numeric_identifier("12345678901234567890"),
            numeric_identifier("12345678901234567891"),
        )

    def test_numeric_rejects(self) -> None:
        for value in (None, "", "  ", "A123", "NaN", "inf", "1_000"):
            self.assertIsNone(numeric_identifier(value), msg=repr(value))

    def test_text(self) -> None:
        self.assertEqual(text_identifier("00123"), "00123")
        self.assertIsNone(text_identifier(""))
        self.assertIsNone(text_identifier(None))

    def test_key(self) -> None:
        self.assertEqual(
            identifier_key("007", True), identifier_key("7", True)
        )
        self.assertNotEqual(
            identifier_key("007", False), identifier_key("7", False)
        )
