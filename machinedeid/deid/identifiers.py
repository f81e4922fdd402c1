"""
machinedeid/deid/identifiers.py

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

**Patient identifiers (e.g. medical record numbers) and their comparison.**

Identifiers are always read as text. Different source systems disagree about
leading zeros (``000123`` in one export, ``123`` in another), so by default we
compare them numerically. We use :class:`decimal.Decimal` rather than
``float``, so long identifiers are compared exactly:

.. code-block:: python

    Decimal("000123") == Decimal("123") == Decimal("123.0")  # True
    hash(Decimal("000123")) == hash(Decimal("123.0"))  # True

"""

from decimal import Decimal, InvalidOperation
from typing import Optional, Union

IdentifierKey = Union[Decimal, str]


def numeric_identifier(value: Optional[str]) -> Optional[Decimal]:
    """
    Returns the canonical numeric form of an identifier, or ``None`` if it
    is missing or is not a finite number.

    Surrounding whitespace is ignored.
    """
    if value is None:
        return None
    value = value.strip()
    if not value or "_" in value:
        # Decimal() accepts "1_000"; a source system would not.
        return None
    try:
        d = Decimal(value)
    except InvalidOperation:
        return None
    if not d.is_finite():
        # "NaN", "Infinity"
        return None
    return d


def text_identifier(value: Optional[str]) -> Optional[str]:
    """
    Returns an identifier for exact text comparison; an empty string is
    treated as missing.
    """
    if value is None or value == "":
        return None
    return value


def identifier_key(
    value: Optional[str], compare_numeric: bool
) -> Optional[IdentifierKey]:
    """
    Returns the key under which an identifier is compared, or ``None`` if it
    has none.

    Args:
        value:
            The identifier as text.
        compare_numeric:
            Compare as a number (tolerating lost leading zeros), rather than
            as exact text?
    """
    if compare_numeric:
        return numeric_identifier(value)
    return text_identifier(value)
