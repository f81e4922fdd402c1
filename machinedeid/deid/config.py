"""
machinedeid/deid/config.py

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

**Config files for de-identification.**

A ``[crosswalk]`` section says where the crosswalk files are; every other
section describes one type of file to de-identify. Column names are given one
per line, because device column names often contain spaces. See
:data:`DEMO_CONFIG`.

"""

import logging
import os
from typing import Dict, List, Optional

from machinedeid.common.extendedconfigparser import (
    configfail,
    ExtendedConfigParser,
)
from machinedeid.deid.columns import DeidConfig, resolve_separator
from machinedeid.deid.constants import (
    COLUMN_FORMAT_SEPARATOR,
    COMMA,
    ConfigKeys,
    CROSSWALK_SECTION,
    CrosswalkDefaults,
    DEFAULT_DATE_FORMAT,
    DEFAULT_DATETIME_FORMAT,
)
from machinedeid.deid.crosswalk import build_crosswalk, Crosswalk

log = logging.getLogger(__name__)


# =============================================================================
# Demo config
# =============================================================================

DEMO_CONFIG = f"""# Demonstration MachineDeID config file.
#
# - Column names are given one per line, and may contain spaces.
# - Separators may be "comma", "tab", or a single character.
# - A date or date/time column may have its own format, as
#   "column name {COLUMN_FORMAT_SEPARATOR} format".
# - Time formats use %Y (4-digit year), %y (2-digit year), %m, %d, %H, %M,
#   %S, and %OS (seconds with optional fraction), separated by nothing or by
#   any of - / : . _ , T and space.

[{CROSSWALK_SECTION}]

{ConfigKeys.TOKEN_FILE} = /path/to/tokens.csv
{ConfigKeys.TOKEN_IDENTIFIER_COLUMN} = {CrosswalkDefaults.IDENTIFIER}
{ConfigKeys.TOKEN_COLUMN} = {CrosswalkDefaults.TOKEN}
{ConfigKeys.OFFSET_FILE} = /path/to/dateshifts.csv
{ConfigKeys.OFFSET_IDENTIFIER_COLUMN} = {CrosswalkDefaults.IDENTIFIER}
{ConfigKeys.OFFSET_COLUMN} = {CrosswalkDefaults.DAY_OFFSET}
# Compare identifiers as numbers, so "000123" matches "123"?
{ConfigKeys.COMPARE_NUMERIC} = true
{ConfigKeys.SEPARATOR} = comma

[pentacam]

{ConfigKeys.FILENAME_PATTERN} = .+\\.csv$
{ConfigKeys.IDENTIFIER_COLUMN} = Pat-ID:
{ConfigKeys.REMOVE} =
    Last Name:
    First Name:
    D.o.Birth:
{ConfigKeys.BLANK} =
    Exam Comment:
{ConfigKeys.DATE_COLUMNS} =
    Exam Date:
{ConfigKeys.DATE_FORMAT} = %m/%d/%Y
{ConfigKeys.SEPARATOR} = comma
{ConfigKeys.OUTPUT_SEPARATOR} = comma

[spectralis_raw]

{ConfigKeys.FILENAME_PATTERN} = ^metadata\\.tsv$
{ConfigKeys.IDENTIFIER_COLUMN} = id
{ConfigKeys.REMOVE} =
    FamilyName
    GivenName
    MiddleName
    NamePrefix
    NameSuffix
    datadir
    SLOfilename
    OCTfilename
{ConfigKeys.DATE_COLUMNS} =
    birthdate {COLUMN_FORMAT_SEPARATOR} %Y%m%d
{ConfigKeys.DATETIME_COLUMNS} =
    timeoftest {COLUMN_FORMAT_SEPARATOR} %y%m%d%H%M%S
{ConfigKeys.EPOCH_COLUMNS} =
    timeoftestEpoch
{ConfigKeys.SEPARATOR} = tab
"""


# =============================================================================
# Reading config files
# =============================================================================


def read_config_file(filename: str) -> ExtendedConfigParser:
    """
    Reads a config file.

    Raises:
        :exc:`ValueError` if it doesn't exist.
    """
    if not filename or not os.path.isfile(filename):
        configfail(f"Config file not found: {filename!r}")
    log.info(f"Reading config file: {filename}")
    parser = ExtendedConfigParser(case_sensitive=True)
    with open(filename, "rt", encoding="utf-8") as f:
        parser.read_file(f)
    return parser


def get_time_columns(
    parser: ExtendedConfigParser, section: str, option: str
) -> Dict[str, Optional[str]]:
    """
    Reads lines of ``column`` or ``column | format``, returning a dictionary
    from column name to format (or ``None``, for the default format).
    """
    return parser.get_mapping(section, option, COLUMN_FORMAT_SEPARATOR)


def get_columns(
    parser: ExtendedConfigParser, section: str, option: str
) -> List[str]:
    return parser.get_lines(section, option)


def deid_config_from_section(
    parser: ExtendedConfigParser, section: str
) -> DeidConfig:
    """
    Builds a :class:`DeidConfig` from a file-type section.

    Raises:
        :exc:`ValueError` for a missing section or identifier column;
        :exc:`machinedeid.deid.errors.ConfigurationError` for conflicting
        column actions or unsupported formats.
    """
    if section == CROSSWALK_SECTION:
        configfail(f"[{CROSSWALK_SECTION}] does not describe a file type")
    parser.require_section(section)
    separator = parser.get_str(section, ConfigKeys.SEPARATOR, default=COMMA)
    compare_numeric = None  # type: Optional[bool]
    if parser.has_option(section, ConfigKeys.COMPARE_NUMERIC):
        compare_numeric = parser.get_bool(section, ConfigKeys.COMPARE_NUMERIC)
    return DeidConfig(
        identifier_column=parser.get_str(
            section, ConfigKeys.IDENTIFIER_COLUMN, required=True
        ),
        columns_to_remove=get_columns(parser, section, ConfigKeys.REMOVE),
        columns_to_blank=get_columns(parser, section, ConfigKeys.BLANK),
        date_columns=get_time_columns(
            parser, section, ConfigKeys.DATE_COLUMNS
        ),
        datetime_columns=get_time_columns(
            parser, section, ConfigKeys.DATETIME_COLUMNS
        ),
        epoch_columns=get_columns(parser, section, ConfigKeys.EPOCH_COLUMNS),
        date_format=parser.get_str(
            section, ConfigKeys.DATE_FORMAT, default=DEFAULT_DATE_FORMAT
        ),
        datetime_format=parser.get_str(
            section,
            ConfigKeys.DATETIME_FORMAT,
            default=DEFAULT_DATETIME_FORMAT,
        ),
        separator=separator,
        output_separator=parser.get_str(
            section, ConfigKeys.OUTPUT_SEPARATOR, default=separator
        ),
        compare_numeric=compare_numeric,
    )


def filename_pattern_from_section(
    parser: ExtendedConfigParser, section: str, required: bool = False
) -> Optional[str]:
    """
    Returns the regular expression for files of this type, if there is one.
    """
    return parser.get_str(
        section, ConfigKeys.FILENAME_PATTERN, required=required
    )


def crosswalk_from_config(
    parser: ExtendedConfigParser,
    token_file: str = None,
    offset_file: str = None,
    compare_numeric: bool = None,
) -> Crosswalk:
    """
    Builds a :class:`Crosswalk` from the ``[crosswalk]`` section. Arguments
    that are not ``None`` override the corresponding options, e.g. from the
    command line.
    """
    s = CROSSWALK_SECTION
    parser.require_section(s)
    if compare_numeric is None:
        compare_numeric = parser.get_bool(
            s, ConfigKeys.COMPARE_NUMERIC, default=True
        )
    return build_crosswalk(
        token_source=token_file or parser.get_str(s, ConfigKeys.TOKEN_FILE),
        offset_source=(
            offset_file or parser.get_str(s, ConfigKeys.OFFSET_FILE)
        ),
        token_identifier_column=parser.get_str(
            s,
            ConfigKeys.TOKEN_IDENTIFIER_COLUMN,
            default=CrosswalkDefaults.IDENTIFIER,
        ),
        token_column=parser.get_str(
            s, ConfigKeys.TOKEN_COLUMN, default=CrosswalkDefaults.TOKEN
        ),
        offset_identifier_column=parser.get_str(
            s,
            ConfigKeys.OFFSET_IDENTIFIER_COLUMN,
            default=CrosswalkDefaults.IDENTIFIER,
        ),
        offset_column=parser.get_str(
            s, ConfigKeys.OFFSET_COLUMN, default=CrosswalkDefaults.DAY_OFFSET
        ),
        compare_numeric=compare_numeric,
        separator=resolve_separator(
            parser.get_str(s, ConfigKeys.SEPARATOR, default=COMMA)
        ),
    )
