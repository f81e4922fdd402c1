"""
machinedeid/deid/errors.py

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

**Exceptions raised during de-identification.**

All are fatal for the current file (or crosswalk build). Recoverable problems
(a missing optional column, an unmatched identifier, an unparseable date) are
logged and counted instead; see
:class:`machinedeid.deid.deidentify.DeidReport`.

"""


class DeidError(Exception):
    """
    Base class for de-identification errors.
    """

    pass


class ConfigurationError(DeidError):
    """
    The request cannot be carried out as configured, e.g. no crosswalk
    source, or a crosswalk without the columns needed.
    """

    pass


class ColumnNotFoundError(ConfigurationError):
    """
    A column that must be present in a table's header is absent.
    """

    pass


class IntegrityError(DeidError):
    """
    A crosswalk is not 1-to-1.
    """

    pass


class DuplicateIdentifierError(IntegrityError):
    """
    One identifier maps to more than one token or day offset.
    """

    pass


class DuplicateTokenError(IntegrityError):
    """
    One token is used for more than one identifier.
    """

    pass


class MalformedTableError(DeidError):
    """
    A delimited file cannot be read as a table: duplicate column names, or a
    row with more fields than the header.
    """

    pass
