"""
machinedeid/deid/table.py

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

**In-memory tables, and reading/writing them as delimited text.**

Every cell is read as text, never converted to a number, so that nothing is
lost (leading zeros in identifiers, precision in long numbers). An empty field
is read as *missing* (``None``), not as an empty string, and a missing value
is written back as an empty, unquoted, field. So ``a,,b`` stays ``a,,b`` and
does not become ``a,"",b``.

"""

import csv
from io import StringIO
from itertools import islice
import logging
from pathlib import Path
from typing import (
    Container,
    Dict,
    Generator,
    Iterable,
    List,
    Optional,
    Sequence,
    TextIO,
    Tuple,
    Union,
)

from machinedeid.deid.constants import COMMA, N_ROWS_TO_SHOW
from machinedeid.deid.errors import ColumnNotFoundError, MalformedTableError

log = logging.getLogger(__name__)

Cell = Optional[str]
Row = List[Cell]
PathType = Union[str, Path]

# Encoding for reading. "utf-8-sig" copes with (and discards) the byte-order
# mark that some Windows device software writes.
READ_ENCODING = "utf-8-sig"
WRITE_ENCODING = "utf-8"


# =============================================================================
# Table
# =============================================================================


class Table:
    """
    A header (of unique column names) plus rows of text cells, in order.
    ``None`` is the missing-value marker.
    """

    def __init__(
        self, header: Sequence[str], rows: Iterable[Sequence[Cell]] = ()
    ) -> None:
        """
        Args:
            header:
                Column names, which must be unique.
            rows:
                Rows of cells, each the same length as the header.

        Raises:
            :exc:`MalformedTableError` for duplicate column names or rows of
            the wrong length.
        """
        self.header = tuple(header)
        duplicates = sorted(
            {c for c in self.header if self.header.count(c) > 1}
        )
        if duplicates:
            raise MalformedTableError(
                f"Duplicate column names: {duplicates!r}"
            )
        self.rows = [list(r) for r in rows]  # type: List[Row]
        ncol = len(self.header)
        for i, row in enumerate(self.rows):
            if len(row) != ncol:
                raise MalformedTableError(
                    f"Row {i} has {len(row)} values but there are {ncol} "
                    f"columns"
                )
        self._index = {c: i for i, c in enumerate(self.header)}

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__}: {len(self.header)} columns, "
            f"{len(self.rows)} rows>"
        )

    def __len__(self) -> int:
        return len(self.rows)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Table):
            return NotImplemented
        return self.header == other.header and self.rows == other.rows

    @classmethod
    def from_dicts(
        cls, header: Sequence[str], dicts: Iterable[Dict[str, Cell]]
    ) -> "Table":
        """
        Creates a table from dictionaries mapping column name to value; absent
        keys give missing values.
        """
        return cls(header, ([d.get(c) for c in header] for d in dicts))

    def has_column(self, colname: str) -> bool:
        return colname in self._index

    def column_index(self, colname: str) -> int:
        """
        Returns the zero-based index of a column.

        Raises:
            :exc:`ColumnNotFoundError` if it is absent.
        """
        try:
            return self._index[colname]
        except KeyError:
            raise ColumnNotFoundError(
                f"Column {colname!r} not found; columns are "
                f"{list(self.header)!r}"
            )

    def column(self, colname: str) -> List[Cell]:
        """
        Returns all values in a column, in row order.
        """
        idx = self.column_index(colname)
        return [row[idx] for row in self.rows]

    def set_column(self, colname: str, values: Sequence[Cell]) -> None:
        """
        Replaces all values in a column.
        """
        if len(values) != len(self.rows):
            raise ValueError(
                f"Column {colname!r}: {len(values)} values supplied for "
                f"{len(self.rows)} rows"
            )
        idx = self.column_index(colname)
        for row, value in zip(self.rows, values):
            row[idx] = value

    def select(self, colnames: Sequence[str]) -> "Table":
        """
        Returns a new table with only the named columns, in the order given.
        """
        indexes = [self.column_index(c) for c in colnames]
        return Table(
            colnames, ([row[i] for i in indexes] for row in self.rows)
        )

    def to_dicts(self) -> List[Dict[str, Cell]]:
        """
        Returns the rows as dictionaries mapping column name to value.
        """
        return [dict(zip(self.header, row)) for row in self.rows]

    def head(self, n: int = N_ROWS_TO_SHOW) -> str:
        """
        A short text rendering of the first few rows, for debugging.
        """
        lines = [repr(self.header)]
        lines.extend(repr(tuple(row)) for row in islice(self.rows, n))
        return "\n".join(lines)


# =============================================================================
# Reading
# =============================================================================


def empty_to_none(values: Iterable[str]) -> Row:
    """
    Translates empty strings to the missing-value marker, ``None``.
    """
    return [None if v == "" else v for v in values]


def read_header(
    filename: PathType, separator: str = COMMA
) -> Tuple[str, ...]:
    """
    Reads just the column names from a delimited file.
    """
    with open(filename, "rt", encoding=READ_ENCODING, newline="") as f:
        reader = csv.reader(f, delimiter=separator)
        try:
            return tuple(next(reader))
        except StopIteration:
            raise MalformedTableError(f"File is empty: {filename}")


def gen_rows_from_reader(
    reader: Iterable[List[str]],
    ncol: int,
    keep_indexes: Sequence[int],
    source: str,
) -> Generator[Row, None, None]:
    """
    Yields rows of the columns we want to keep, from a ``csv.reader`` that
    has already consumed the header.

    - Blank lines are skipped.
    - Short rows are padded with missing values.
    - Long rows raise :exc:`MalformedTableError`.

    Columns not in ``keep_indexes`` are discarded as each line is read, so
    they never reach the table.
    """
    for values in reader:
        if not values:
            continue
        n = len(values)
        if n > ncol:
            # The csv module counts lines from 1 and includes the header.
            raise MalformedTableError(
                f"{source}, line {getattr(reader, 'line_num', '?')}: "
                f"{n} fields but only {ncol} column names"
            )
        if n < ncol:
            values = values + [""] * (ncol - n)
        yield empty_to_none(values[i] for i in keep_indexes)


def read_table_from_file(
    f: TextIO,
    separator: str = COMMA,
    skip_columns: Container[str] = (),
    source: str = "<stream>",
) -> Table:
    """
    Reads a table from an open text file. See :func:`read_table`.
    """
    reader = csv.reader(f, delimiter=separator)
    try:
        header = next(reader)
    except StopIteration:
        raise MalformedTableError(f"File is empty: {source}")
    duplicates = sorted({c for c in header if header.count(c) > 1})
    if duplicates:
        raise MalformedTableError(
            f"{source}: duplicate column names: {duplicates!r}"
        )
    keep_indexes = [i for i, c in enumerate(header) if c not in skip_columns]
    kept_header = [header[i] for i in keep_indexes]
    rows = gen_rows_from_reader(
        reader, ncol=len(header), keep_indexes=keep_indexes, source=source
    )
    return Table(kept_header, rows)


def read_table(
    filename: PathType,
    separator: str = COMMA,
    skip_columns: Container[str] = (),
) -> Table:
    """
    Reads a delimited text file with a header row into a :class:`Table`,
    with every value as text.

    Args:
        filename:
            File to read.
        separator:
            Field separator, e.g. ``","`` or ``"\\t"``.
        skip_columns:
            Names of columns not to read into memory at all.

    Raises:
        :exc:`MalformedTableError` if the file is empty, has duplicate
        column names, or has a row with more fields than the header.
    """
    with open(filename, "rt", encoding=READ_ENCODING, newline="") as f:
        table = read_table_from_file(
            f,
            separator=separator,
            skip_columns=skip_columns,
            source=str(filename),
        )
    log.debug(f"{len(table)} rows read from {filename}")
    return table


def read_table_from_str(
    text: str, separator: str = COMMA, skip_columns: Container[str] = ()
) -> Table:
    """
    Reads a table from a string (mainly for testing).
    """
    return read_table_from_file(
        StringIO(text, newline=""),
        separator=separator,
        skip_columns=skip_columns,
    )


# =============================================================================
# Writing
# =============================================================================


def write_table_to_file(
    table: Table, f: TextIO, separator: str = COMMA
) -> None:
    """
    Writes a table to an open text file. Missing values become empty,
    unquoted, fields; other values are quoted only if they need to be.
    """
    writer = csv.writer(f, delimiter=separator, lineterminator="\n")
    writer.writerow(table.header)
    writer.writerows(table.rows)  # csv writes None as an empty field


def write_table(
    table: Table, filename: PathType, separator: str = COMMA
) -> None:
    """
    Writes a table to a delimited text file.
    """
    log.info(f"Writing to {filename}")
    with open(filename, "wt", encoding=WRITE_ENCODING, newline="") as f:
        write_table_to_file(table, f, separator=separator)


def table_to_str(table: Table, separator: str = COMMA) -> str:
    """
    Returns a table as delimited text (mainly for testing).
    """
    f = StringIO(newline="")
    write_table_to_file(table, f, separator=separator)
    return f.getvalue()
