"""
machinedeid/version.py

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

**Version constants for MachineDeID.**

"""

import sys


# =============================================================================
# Constants
# =============================================================================

MACHINEDEID_VERSION = "0.3.0"
MACHINEDEID_VERSION_DATE = "2023-11-14"

MINIMUM_PYTHON_VERSION = (3, 9)


# =============================================================================
# Derived constants
# =============================================================================

MACHINEDEID_VERSION_PRETTY = (
    f"MachineDeID version {MACHINEDEID_VERSION}, {MACHINEDEID_VERSION_DATE}."
)
MINIMUM_PYTHON_VERSION_AS_DECIMAL = ".".join(
    str(_) for _ in MINIMUM_PYTHON_VERSION
)


# =============================================================================
# Helper functions
# =============================================================================


def require_minimum_python_version():
    """
    Checks that we are running the required minimum Python version.
    """
    assert (
        sys.version_info >= MINIMUM_PYTHON_VERSION
    ), f"Need Python {MINIMUM_PYTHON_VERSION_AS_DECIMAL}+"
