"""
machinedeid/deid/presets.py

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

**Settings for the metadata files exported by particular devices.**

Each preset knows which files in an export directory to process and what to
do with their columns. Identifiers in these exports are compared as text.

"""

from typing import Callable, Dict, NamedTuple

from machinedeid.deid.columns import DeidConfig
from machinedeid.deid.constants import COMMA, TAB
from machinedeid.deid.errors import ConfigurationError


class Preset(NamedTuple):
    name: str
    description: str
    filename_pattern: str
    make_config: Callable[[], DeidConfig]


# =============================================================================
# Device configurations
# =============================================================================


def spectralis_raw_config() -> DeidConfig:
    return DeidConfig(
        identifier_column="id",
        columns_to_remove=[
            "FamilyName",
            "GivenName",
            "MiddleName",
            "NamePrefix",
            "NameSuffix",
            "datadir",
            "SLOfilename",
            "OCTfilename",
        ],
        date_columns={"birthdate": "%Y%m%d"},
        datetime_columns={"timeoftest": "%y%m%d%H%M%S"},
        epoch_columns=["timeoftestEpoch"],
        separator=TAB,
        output_separator=TAB,
        compare_numeric=False,
    )


def spectralis_pdf_config() -> DeidConfig:
    return DeidConfig(
        identifier_column="id",
        columns_to_remove=["FileName"],
        date_columns={"dob": "%Y%m%d", "TestDate": "%Y%m%d"},
        separator=TAB,
        output_separator=TAB,
        compare_numeric=False,
    )


def cirrus_config() -> DeidConfig:
    return DeidConfig(
        identifier_column="id",
        columns_to_remove=["datadir", "scanid", "refid", "filenameRawData"],
        date_columns={"birthdate": "%Y%m%d"},
        datetime_columns={"timeoftest": "%y%m%d%H%M%S"},
        separator=TAB,
        output_separator=TAB,
        compare_numeric=False,
    )


def hfa_config() -> DeidConfig:
    return DeidConfig(
        identifier_column="id",
        date_columns={"birthdate": "%Y%m%d"},
        datetime_columns={"timeoftest": "%y%m%d%H%M"},
        epoch_columns=["timeoftestEpoch"],
        separator=COMMA,
        output_separator=COMMA,
        compare_numeric=False,
    )


def pentacam_config() -> DeidConfig:
    return DeidConfig(
        identifier_column="Pat-ID:",
        columns_to_remove=["Last Name:", "First Name:", "D.o.Birth:"],
        columns_to_blank=["Exam Comment:"],
        date_columns={"Exam Date:": "%m/%d/%Y"},
        separator=COMMA,
        output_separator=COMMA,
        compare_numeric=False,
    )


PRESETS = {
    p.name: p
    for p in (
        Preset(
            "spectralis_raw",
            "Heidelberg Spectralis raw export metadata",
            r"^metadata\.tsv$",
            spectralis_raw_config,
        ),
        Preset(
            "spectralis_pdf",
            "Heidelberg Spectralis PDF report metadata",
            r"^pdf_.+\.tsv$",
            spectralis_pdf_config,
        ),
        Preset(
            "cirrus",
            "Zeiss Cirrus OCT metadata",
            r"^metadata_.+\.tsv$",
            cirrus_config,
        ),
        Preset(
            "hfa",
            "Zeiss Humphrey Field Analyzer metadata",
            r".+\.csv$",
            hfa_config,
        ),
        Preset(
            "pentacam",
            "Oculus Pentacam export",
            r".+\.csv$",
            pentacam_config,
        ),
    )
}  # type: Dict[str, Preset]


def get_preset(name: str) -> Preset:
    """
    Returns a preset by name.

    Raises:
        :exc:`ConfigurationError` if there is no such preset.
    """
    try:
        return PRESETS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown preset {name!r}; choose from {sorted(PRESETS)!r}"
        )
