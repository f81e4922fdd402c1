"""
machinedeid/common/__init__.py

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

Functions shared across MachineDeID.

"""
