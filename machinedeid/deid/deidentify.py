"""
machinedeid/deid/deidentify.py

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

**De-identify a table exported by a device.**

For each file:

- columns to be removed are never read;
- columns to be blanked have every value set to missing;
- the identifier is replaced by its token from the crosswalk (or missing, if
  the identifier is not in the crosswalk);
- date, date/time, and epoch columns are shifted by the patient's day offset
  (or set to missing, if there is no offset or the value cannot be read);
- everything else passes through unchanged, in the original row order.

Problems with individual rows never stop the file; they are counted in a
:class:`DeidReport`.

"""

from collections import Counter
from dataclasses import dataclass, field
import logging
import os
from typing import Dict, List, Optional, Sequence, Tuple, Union

from machinedeid.deid.columns import (
    ColumnAction,
    ColumnNames,
    DeidConfig,
    TimeColumns,
)
from machinedeid.deid.constants import (
    AUTO_OUTPUT,
    AUTO_OUTPUT_PREFIX,
    COMMA,
    DEFAULT_DATE_FORMAT,
    DEFAULT_DATETIME_FORMAT,
    N_ROWS_TO_SHOW,
)
from machinedeid.deid.crosswalk import Crosswalk, CrosswalkEntry
from machinedeid.deid.errors import ColumnNotFoundError, ConfigurationError
from machinedeid.deid.identifiers import identifier_key
from machinedeid.deid.table import (
    Cell,
    PathType,
    read_header,
    read_table,
    Table,
    write_table,
)
from machinedeid.deid.timeformats import shift_epoch

log = logging.getLogger(__name__)

InputTable = Union[PathType, Table]


# =============================================================================
# Report
# =============================================================================


@dataclass
class DeidReport:
    """
    What happened while de-identifying one table.
    """

    source: str
    n_rows: int = 0
    n_missing_identifier: int = 0  # identifier cell empty
    n_unmatched: int = 0  # identifier present but not in the crosswalk
    n_no_day_offset: int = 0  # rows whose dates could not be shifted
    n_unparseable: Dict[str, int] = field(default_factory=dict)
    missing_columns: List[str] = field(default_factory=list)

    @property
    def n_without_token(self) -> int:
        return self.n_missing_identifier + self.n_unmatched

    def summary(self) -> str:
        parts = [
            f"{self.source}: {self.n_rows} rows",
            f"{self.n_without_token} without a token",
        ]
        if self.n_no_day_offset:
            parts.append(f"{self.n_no_day_offset} without a date shift")
        for colname, n in self.n_unparseable.items():
            if n:
                parts.append(f"{n} unreadable values in {colname!r}")
        if self.missing_columns:
            parts.append(f"absent columns: {self.missing_columns!r}")
        return "; ".join(parts)


# =============================================================================
# Helpers
# =============================================================================


def describe_input(input_table: InputTable) -> str:
    if isinstance(input_table, Table):
        return "<table>"
    return str(input_table)


def check_crosswalk(crosswalk: Crosswalk, config: DeidConfig) -> None:
    """
    Checks that the crosswalk provides what this configuration needs.

    Raises:
        :exc:`ConfigurationError`
    """
    if crosswalk is None:
        raise ConfigurationError("No crosswalk supplied")
    if not crosswalk.has_tokens:
        raise ConfigurationError(
            f"Crosswalk has columns {crosswalk.columns!r}, with no token "
            f"column, so identifiers cannot be replaced"
        )
    if config.requires_day_offsets and not crosswalk.has_day_offsets:
        raise ConfigurationError(
            f"Columns to shift were requested "
            f"({config.shift_columns!r}) but the crosswalk has columns "
            f"{crosswalk.columns!r}, with no day offset column"
        )


def find_absent_columns(
    header: Sequence[str], config: DeidConfig, source: str
) -> List[str]:
    """
    Checks the header of a file against the configuration.

    Returns:
        names of configured columns (other than the identifier) that the
        file lacks; these are warned about and then ignored

    Raises:
        :exc:`ColumnNotFoundError` if the identifier column is absent.
    """
    if config.identifier_column not in header:
        raise ColumnNotFoundError(
            f"{source}: identifier column {config.identifier_column!r} not "
            f"found; columns are {list(header)!r}"
        )
    absent = [c for c in config.rules if c not in header]
    for colname in absent:
        log.warning(
            f"{source}: column {colname!r} (to "
            f"{config.rule(colname).action.value}) is not in the file; "
            f"ignoring it"
        )
    return absent


def load_input(
    input_table: InputTable, config: DeidConfig, source: str
) -> Tuple[Table, List[str]]:
    """
    Returns a table holding all columns except those to be removed, plus the
    names of configured columns that are absent.

    A :class:`Table` passed in is copied, never modified.
    """
    remove = set(config.columns_to_remove)
    if isinstance(input_table, Table):
        header = input_table.header
    else:
        header = read_header(input_table, separator=config.separator)
    log.debug(f"Column names in {source}: {list(header)!r}")
    absent = find_absent_columns(header, config, source)
    if isinstance(input_table, Table):
        table = input_table.select([c for c in header if c not in remove])
    else:
        table = read_table(
            input_table, separator=config.separator, skip_columns=remove
        )
    return table, absent


def log_rows_per_identifier(
    values: Sequence[Cell], description: str
) -> None:
    """
    Logs, at DEBUG level, how many identifiers have 1, 2, ... rows.
    """
    if not log.isEnabledFor(logging.DEBUG):
        return
    rows_per_identifier = Counter(v for v in values if v is not None)
    distribution = Counter(rows_per_identifier.values())
    lines = [
        f"{n_identifiers} identifiers with {n_rows} rows"
        for n_rows, n_identifiers in sorted(distribution.items())
    ]
    log.debug(
        f"Rows per identifier, {description}:\n" + "\n".join(lines)
        if lines
        else f"Rows per identifier, {description}: no identifiers"
    )


# =============================================================================
# Column transformations
# =============================================================================


def blank_columns(
    table: Table, colnames: Sequence[str], source: str
) -> None:
    for colname in colnames:
        if table.has_column(colname):
            table.set_column(colname, [None] * len(table))
            log.debug(f"{source}: blanked column {colname!r}")


def match_entries(
    table: Table,
    config: DeidConfig,
    crosswalk: Crosswalk,
    report: DeidReport,
) -> List[Optional[CrosswalkEntry]]:
    """
    Finds the crosswalk entry for each row (or ``None``), using the
    identifier as originally read.
    """
    compare_numeric = config.compare_numeric
    if compare_numeric is None:
        compare_numeric = crosswalk.compare_numeric
    elif compare_numeric != crosswalk.compare_numeric:
        log.warning(
            f"{report.source}: comparing identifiers "
            f"{'numerically' if compare_numeric else 'as text'}, but the "
            f"crosswalk was built comparing them "
            f"{'numerically' if crosswalk.compare_numeric else 'as text'}; "
            f"identifiers may fail to match"
        )
    entries = []  # type: List[Optional[CrosswalkEntry]]
    for value in table.column(config.identifier_column):
        key = identifier_key(value, compare_numeric)
        if key is None:
            report.n_missing_identifier += 1
            entries.append(None)
            continue
        entry = crosswalk.get(key)
        if entry is None:
            report.n_unmatched += 1
        entries.append(entry)
    if report.n_missing_identifier:
        log.info(
            f"{report.source}: {report.n_missing_identifier} rows have no "
            f"usable identifier in {config.identifier_column!r}"
        )
    if report.n_unmatched:
        log.info(
            f"{report.source}: {report.n_unmatched} rows have an identifier "
            f"not in the crosswalk"
        )
    return entries


def shift_columns(
    table: Table,
    config: DeidConfig,
    offsets: Sequence[Optional[int]],
    report: DeidReport,
) -> None:
    """
    Shifts every date, date/time, and epoch column present in the table.
    """
    for colname in config.shift_columns:
        if not table.has_column(colname):
            continue
        rule = config.rule(colname)
        if rule.action == ColumnAction.SHIFT_EPOCH:
            shifter = shift_epoch
        else:
            shifter = rule.timeformat.shift
        before = table.column(colname)
        after = []  # type: List[Cell]
        n_unparseable = 0
        for value, days in zip(before, offsets):
            shifted = shifter(value, days)
            if shifted is None and value is not None and days is not None:
                n_unparseable += 1
            after.append(shifted)
        table.set_column(colname, after)
        report.n_unparseable[colname] = n_unparseable
        if n_unparseable:
            log.warning(
                f"{report.source}: {n_unparseable} values in {colname!r} "
                f"could not be read"
                + (
                    f" with format {rule.timeformat.fmt!r}"
                    if rule.timeformat
                    else ""
                )
                + " and were set to missing"
            )
        log.debug(
            f"{report.source}: {colname!r} ({rule.action.value}), first "
            f"values before: {before[:N_ROWS_TO_SHOW]!r}, after: "
            f"{after[:N_ROWS_TO_SHOW]!r}"
        )


# =============================================================================
# De-identification
# =============================================================================


def deidentify_with_report(
    input_table: InputTable, config: DeidConfig, crosswalk: Crosswalk
) -> Tuple[Table, DeidReport]:
    """
    De-identifies a table.

    Args:
        input_table:
            Filename of a delimited file, or a :class:`Table` (which is not
            modified).
        config:
            A :class:`DeidConfig` saying what to do with each column.
        crosswalk:
            A :class:`Crosswalk` providing tokens (and day offsets, if any
            columns are to be shifted).

    Returns:
        tuple: ``(table, report)``

    Raises:
        :exc:`ConfigurationError` if the crosswalk lacks what is needed;
        :exc:`ColumnNotFoundError` if the identifier column is absent;
        :exc:`MalformedTableError` if the file cannot be read as a table.
    """
    check_crosswalk(crosswalk, config)
    source = describe_input(input_table)
    table, absent = load_input(input_table, config, source)
    report = DeidReport(
        source=source, n_rows=len(table), missing_columns=absent
    )
    log.info(f"{source}: {report.n_rows} rows read")

    blank_columns(table, config.columns_to_blank, source)

    # The lookup uses the identifier as read, for both token and offset.
    identifiers = table.column(config.identifier_column)
    log_rows_per_identifier(identifiers, "before tokenizing")
    entries = match_entries(table, config, crosswalk, report)
    table.set_column(
        config.identifier_column,
        [e.token if e is not None else None for e in entries],
    )
    log_rows_per_identifier(
        table.column(config.identifier_column), "after tokenizing"
    )

    if config.requires_day_offsets:
        offsets = [e.day_offset if e is not None else None for e in entries]
        report.n_no_day_offset = sum(1 for d in offsets if d is None)
        if report.n_no_day_offset:
            log.info(
                f"{source}: {report.n_no_day_offset} rows have no date "
                f"shift; their dates will be missing"
            )
        shift_columns(table, config, offsets, report)

    log.info(report.summary())
    return table, report


def deidentify(
    input_table: InputTable,
    identifier_column: str,
    columns_to_remove: ColumnNames = (),
    columns_to_blank: ColumnNames = (),
    date_columns: TimeColumns = (),
    datetime_columns: TimeColumns = (),
    epoch_columns: ColumnNames = (),
    crosswalk: Crosswalk = None,
    compare_mrn_numeric: bool = None,
    separator: str = COMMA,
    date_format: str = DEFAULT_DATE_FORMAT,
    datetime_format: str = DEFAULT_DATETIME_FORMAT,
) -> Table:
    """
    De-identifies a table, configured by keyword. See
    :class:`machinedeid.deid.columns.DeidConfig` for the meaning of the
    arguments, and :func:`deidentify_with_report` for errors.

    ``compare_mrn_numeric`` must match the convention used to build the
    crosswalk, or identifiers will not match; by default, the crosswalk's
    convention is used.

    Returns:
        the de-identified :class:`Table`
    """
    config = DeidConfig(
        identifier_column=identifier_column,
        columns_to_remove=columns_to_remove,
        columns_to_blank=columns_to_blank,
        date_columns=date_columns,
        datetime_columns=datetime_columns,
        epoch_columns=epoch_columns,
        date_format=date_format,
        datetime_format=datetime_format,
        separator=separator,
        compare_numeric=compare_mrn_numeric,
    )
    table, _ = deidentify_with_report(input_table, config, crosswalk)
    return table


# =============================================================================
# Files
# =============================================================================


def resolve_output_filename(
    input_filename: PathType, output_filename: Optional[PathType]
) -> Optional[str]:
    """
    Returns the output filename. If it is the special value ``AUTO``, it is
    the input filename with ``deid_`` prefixed to its base name, in the same
    directory.
    """
    if output_filename is None:
        return None
    if str(output_filename) == AUTO_OUTPUT:
        directory, basename = os.path.split(str(input_filename))
        return os.path.join(directory, AUTO_OUTPUT_PREFIX + basename)
    return str(output_filename)


def deidentify_file(
    filename: Union[PathType, Sequence[PathType]],
    config: DeidConfig,
    crosswalk: Crosswalk,
    output_filename: PathType = None,
) -> Tuple[Table, DeidReport]:
    """
    De-identifies one file, optionally writing the result (with the
    configured output separator).

    Args:
        filename:
            The input file. A sequence holding exactly one filename is also
            accepted.
        config:
            A :class:`DeidConfig`.
        crosswalk:
            A :class:`Crosswalk`.
        output_filename:
            Where to write the result: a filename, ``AUTO`` (see
            :func:`resolve_output_filename`), or ``None`` not to write.

    Returns:
        tuple: ``(table, report)``

    Raises:
        :exc:`ConfigurationError` if more than one input file is given, or
        the output would overwrite the input; otherwise as
        :func:`deidentify_with_report`.
    """
    if not isinstance(filename, (str, os.PathLike)):
        filenames = list(filename)
        if len(filenames) != 1:
            raise ConfigurationError(
                f"Exactly one input file is required; {len(filenames)} "
                f"given: {filenames!r}"
            )
        filename = filenames[0]
    output = resolve_output_filename(filename, output_filename)
    if output is not None and os.path.abspath(output) == os.path.abspath(
        str(filename)
    ):
        raise ConfigurationError(
            f"Output file would overwrite input file: {filename}"
        )
    table, report = deidentify_with_report(filename, config, crosswalk)
    if output is not None:
        write_table(table, output, separator=config.output_separator)
    return table, report
