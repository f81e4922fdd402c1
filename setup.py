"""
setup.py

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

MachineDeID setup file

To use:

    python setup.py sdist

    twine upload dist/*

To install in development mode:

    pip install -e .[dev]

"""

from setuptools import find_packages, setup
import os

from machinedeid.common.constants import MachineDeidCommand
from machinedeid.version import (
    MACHINEDEID_VERSION,
    require_minimum_python_version,
)

require_minimum_python_version()


# =============================================================================
# Constants
# =============================================================================

# Directories
THIS_DIR = os.path.abspath(os.path.dirname(__file__))  # .../machinedeid

# Get the long description from the README file
with open(os.path.join(THIS_DIR, "README.rst"), encoding="utf-8") as f:
    LONG_DESCRIPTION = f.read()

# Package dependencies
INSTALL_REQUIRES = [
    "cardinal_pythonlib>=2.1.0",  # RNC libraries: logging, file helpers
    "pendulum>=2.1.2",  # dates/times; 2.x and 3.x both work
    "regex>=2024.11.6",  # better regexes (cf. re)
    "rich-argparse>=0.5.0",  # colourful help
]

EXTRAS_REQUIRE = {
    # -------------------------------------------------------------------------
    # For development only:
    # -------------------------------------------------------------------------
    "dev": [
        "black>=23.0.0",  # auto code formatter, keep in sync with .pre-commit-config.yaml  # noqa: E501
        "faker>=13.3.1",  # test data creation
        "flake8>=5.0.4",  # code checks
        "pytest>=8.3.4",  # automatic testing
    ],
}


# =============================================================================
# setup args
# =============================================================================

setup(
    name="machinedeid",
    version=MACHINEDEID_VERSION,
    description="MachineDeID: de-identification of tables exported by "
    "ophthalmic imaging and testing devices",
    long_description=LONG_DESCRIPTION,
    # Choose your license
    license="GNU General Public License v3 or later (GPLv3+)",
    # See https://pypi.python.org/pypi?%3Aaction=list_classifiers
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)",  # noqa: E501
        "Natural Language :: English",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3 :: Only",
        "Topic :: Scientific/Engineering :: Medical Science Apps.",
    ],
    keywords="de-identification anonymisation ophthalmology",
    packages=find_packages(),
    # finds all the .py files in subdirectories, as long as there are
    # __init__.py files
    install_requires=INSTALL_REQUIRES,
    extras_require=EXTRAS_REQUIRE,
    python_requires=">=3.9",
    entry_points={
        "console_scripts": [
            # Format is "script=module:function".
            f"{MachineDeidCommand.MACHINEDEID}=machinedeid.deid.deid_cli:main",
        ],
    },
)
