"""
machinedeid/deid/constants.py

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

**Constants for de-identification of device exports.**

"""


# =============================================================================
# Constants
# =============================================================================

SECONDS_PER_DAY = 86400  # 24 * 60 * 60

N_ROWS_TO_SHOW = 6  # for debugging output, like R's head()
N_BAD_VALUES_TO_SHOW = 10  # in error messages

COMMA = ","
TAB = "\t"

# Separator names that may be used in config files and on the command line.
SEPARATOR_NAMES = {
    "comma": COMMA,
    "tab": TAB,
    "tsv": TAB,
    "csv": COMMA,
    "semicolon": ";",
    "pipe": "|",
}

DEFAULT_DATE_FORMAT = "%Y-%m-%d"
DEFAULT_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%OS"

# Passing this as an output filename means "derive it from the input
# filename", by prefixing the base name with AUTO_OUTPUT_PREFIX.
AUTO_OUTPUT = "AUTO"
AUTO_OUTPUT_PREFIX = "deid_"

DEFAULT_OUTPUT_SUBDIR = "deidentified"


class CrosswalkColumns:
    """
    Canonical column names within a crosswalk.
    """

    IDENTIFIER = "identifier"
    TOKEN = "token"
    DAY_OFFSET = "day_offset"


class CrosswalkDefaults:
    """
    Default column names in the crosswalk source files, as supplied by the
    honest broker.
    """

    IDENTIFIER = "PAT_MRN"
    TOKEN = "PAT_MRN_T"
    DAY_OFFSET = "SHIFT_NUM"


class ConfigKeys:
    """
    Option names within config files.
    """

    # [crosswalk] section
    TOKEN_FILE = "token_file"
    TOKEN_IDENTIFIER_COLUMN = "token_identifier_column"
    TOKEN_COLUMN = "token_column"
    OFFSET_FILE = "offset_file"
    OFFSET_IDENTIFIER_COLUMN = "offset_identifier_column"
    OFFSET_COLUMN = "offset_column"
    COMPARE_NUMERIC = "compare_numeric"

    # file-type sections
    IDENTIFIER_COLUMN = "identifier_column"
    FILENAME_PATTERN = "filename_pattern"
    REMOVE = "remove"
    BLANK = "blank"
    DATE_COLUMNS = "date_columns"
    DATE_FORMAT = "date_format"
    DATETIME_COLUMNS = "datetime_columns"
    DATETIME_FORMAT = "datetime_format"
    EPOCH_COLUMNS = "epoch_columns"
    SEPARATOR = "separator"
    OUTPUT_SEPARATOR = "output_separator"


CROSSWALK_SECTION = "crosswalk"

# In config files, "column | format" gives a column its own time format.
COLUMN_FORMAT_SEPARATOR = "|"
