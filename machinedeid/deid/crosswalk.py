"""
machinedeid/deid/crosswalk.py

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

**The crosswalk: identifier to token and/or day offset.**

Tokens and day offsets are generated elsewhere (by an honest broker) and
supplied to us as one or two delimited files:

- a token file, with an identifier column and a token column;
- a date-shift file, with an identifier column and a day-offset column.

We read these, check that they are 1-to-1, and combine them into a single
read-only :class:`Crosswalk`. If both are supplied, only identifiers present
in both are kept, so that every identifier we can tokenize we can also
date-shift.

"""

from collections import Counter
from decimal import Decimal, InvalidOperation
import logging
from pathlib import Path
from types import MappingProxyType
from typing import (
    Callable,
    Iterable,
    Iterator,
    List,
    NamedTuple,
    Optional,
    Tuple,
    Type,
    TypeVar,
    Union,
)

from machinedeid.deid.constants import (
    COMMA,
    CrosswalkColumns,
    CrosswalkDefaults,
    N_BAD_VALUES_TO_SHOW,
)
from machinedeid.deid.errors import (
    ColumnNotFoundError,
    ConfigurationError,
    DuplicateIdentifierError,
    DuplicateTokenError,
    IntegrityError,
)
from machinedeid.deid.identifiers import IdentifierKey, identifier_key
from machinedeid.deid.table import read_header, read_table, Table

log = logging.getLogger(__name__)

CrosswalkSource = Union[str, Path, Table]
T = TypeVar("T")


# =============================================================================
# Crosswalk
# =============================================================================


class CrosswalkEntry(NamedTuple):
    """
    One identifier, with its token and/or day offset.
    """

    identifier: IdentifierKey
    token: Optional[str] = None
    day_offset: Optional[int] = None


class Crosswalk:
    """
    An immutable mapping from identifier to :class:`CrosswalkEntry`.

    Build one with :func:`build_crosswalk`. It is never modified afterwards,
    so one crosswalk can be shared by many de-identification runs.
    """

    __slots__ = (
        "_compare_numeric",
        "_entries",
        "_has_day_offsets",
        "_has_tokens",
        "_lookup",
    )

    def __init__(
        self,
        entries: Iterable[CrosswalkEntry],
        compare_numeric: bool,
        has_tokens: bool,
        has_day_offsets: bool,
    ) -> None:
        """
        Args:
            entries:
                The entries. Identifiers must be unique, and so must tokens.
            compare_numeric:
                Are identifiers keyed by their numeric value (rather than
                their exact text)? Callers must look up identifiers using the
                same convention.
            has_tokens:
                Does the crosswalk provide tokens?
            has_day_offsets:
                Does the crosswalk provide day offsets?

        Raises:
            :exc:`IntegrityError` if the entries are not 1-to-1.
        """
        entries = sorted(entries, key=lambda e: e.identifier)
        lookup = {e.identifier: e for e in entries}
        if len(lookup) != len(entries):
            raise DuplicateIdentifierError(
                "Crosswalk entries have duplicate identifiers"
            )
        tokens = [e.token for e in entries if e.token is not None]
        if len(set(tokens)) != len(tokens):
            raise DuplicateTokenError(
                "Crosswalk entries have duplicate tokens"
            )
        self._entries = tuple(entries)
        self._lookup = MappingProxyType(lookup)
        self._compare_numeric = compare_numeric
        self._has_tokens = has_tokens
        self._has_day_offsets = has_day_offsets

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__}: {len(self)} entries, "
            f"columns={self.columns!r}, "
            f"compare_numeric={self.compare_numeric}>"
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CrosswalkEntry]:
        return iter(self._entries)

    def __contains__(self, key: IdentifierKey) -> bool:
        return key in self._lookup

    @property
    def compare_numeric(self) -> bool:
        return self._compare_numeric

    @property
    def has_tokens(self) -> bool:
        return self._has_tokens

    @property
    def has_day_offsets(self) -> bool:
        return self._has_day_offsets

    @property
    def columns(self) -> Tuple[str, ...]:
        """
        The canonical names of the columns this crosswalk provides.
        """
        cols = [CrosswalkColumns.IDENTIFIER]
        if self._has_tokens:
            cols.append(CrosswalkColumns.TOKEN)
        if self._has_day_offsets:
            cols.append(CrosswalkColumns.DAY_OFFSET)
        return tuple(cols)

    def get(self, key: Optional[IdentifierKey]) -> Optional[CrosswalkEntry]:
        """
        Returns the entry for an already-normalized identifier key, or
        ``None``.
        """
        if key is None:
            return None
        return self._lookup.get(key)

    def lookup(
        self, identifier: Optional[str], compare_numeric: bool = None
    ) -> Optional[CrosswalkEntry]:
        """
        Returns the entry for an identifier given as text, or ``None``.

        Args:
            identifier:
                The identifier, as text.
            compare_numeric:
                Comparison convention; by default, the one used to build the
                crosswalk.
        """
        if compare_numeric is None:
            compare_numeric = self._compare_numeric
        return self.get(identifier_key(identifier, compare_numeric))

    def as_table(self) -> Table:
        """
        Returns the crosswalk as a table with canonical column names.
        """
        rows = []
        for e in self._entries:
            row = [str(e.identifier)]
            if self._has_tokens:
                row.append(e.token)
            if self._has_day_offsets:
                row.append(
                    None if e.day_offset is None else str(e.day_offset)
                )
            rows.append(row)
        return Table(self.columns, rows)


# =============================================================================
# Value conversion
# =============================================================================


def parse_token(value: Optional[str]) -> Optional[str]:
    """
    Tokens are used exactly as supplied; an empty one is missing.
    """
    if value is None or value == "":
        return None
    return value


def parse_day_offset(value: Optional[str]) -> Optional[int]:
    """
    Reads a day offset: a signed integer, possibly with surrounding
    whitespace, or written as a decimal with no fractional part (e.g.
    ``"4.0"``). Returns ``None`` for anything else.
    """
    if value is None:
        return None
    value = value.strip()
    if not value or "_" in value:
        return None
    try:
        return int(value)
    except ValueError:
        pass
    try:
        d = Decimal(value)
    except InvalidOperation:
        return None
    if not d.is_finite() or d != d.to_integral_value():
        return None
    return int(d)


# =============================================================================
# Reading crosswalk sources
# =============================================================================


def describe_source(source: CrosswalkSource) -> str:
    if isinstance(source, Table):
        return "<table>"
    return str(source)


def load_source_columns(
    source: CrosswalkSource,
    identifier_column: str,
    value_column: str,
    separator: str = COMMA,
) -> Table:
    """
    Returns a two-column table (identifier, value) from a crosswalk source,
    reading only those two columns from disk.

    Raises:
        :exc:`ColumnNotFoundError` if either column is absent.
    """
    description = describe_source(source)
    if identifier_column == value_column:
        raise ConfigurationError(
            f"{description}: identifier and value columns are both "
            f"{identifier_column!r}"
        )
    if isinstance(source, Table):
        header = source.header
    else:
        header = read_header(source, separator=separator)
    log.debug(f"Column names in {description}: {list(header)!r}")
    for colname in (identifier_column, value_column):
        if colname not in header:
            raise ColumnNotFoundError(
                f"{colname!r} not a column in {description}"
            )
    if isinstance(source, Table):
        table = source
    else:
        wanted = (identifier_column, value_column)
        table = read_table(
            source,
            separator=separator,
            skip_columns=[c for c in header if c not in wanted],
        )
    return table.select([identifier_column, value_column])


def read_pairs(
    source: CrosswalkSource,
    identifier_column: str,
    value_column: str,
    convert: Callable[[Optional[str]], Optional[T]],
    compare_numeric: bool,
    separator: str = COMMA,
) -> List[Tuple[IdentifierKey, Optional[T]]]:
    """
    Reads (identifier, value) pairs from a crosswalk source, normalizing the
    identifier and converting the value. Rows lacking a usable identifier
    are dropped, with a warning. Unusable values are kept as ``None``, so
    that they still count when checking the crosswalk is 1-1; see
    :func:`drop_missing_values`.
    """
    description = describe_source(source)
    table = load_source_columns(
        source, identifier_column, value_column, separator=separator
    )
    log.info(f"{len(table)} rows read from {description}")
    log.debug(f"First rows of {description}:\n{table.head()}")
    pairs = []  # type: List[Tuple[IdentifierKey, Optional[T]]]
    n_bad_identifier = 0
    for raw_identifier, raw_value in table.rows:
        key = identifier_key(raw_identifier, compare_numeric)
        if key is None:
            n_bad_identifier += 1
            continue
        pairs.append((key, convert(raw_value)))
    if n_bad_identifier:
        log.warning(
            f"{description}: dropped {n_bad_identifier} rows with a missing "
            f"{'or non-numeric ' if compare_numeric else ''}identifier in "
            f"{identifier_column!r}"
        )
    return pairs


def drop_missing_values(
    pairs: List[Tuple[IdentifierKey, Optional[T]]],
    description: str,
    value_column: str,
) -> List[Tuple[IdentifierKey, T]]:
    """
    Removes pairs whose value is missing or invalid, with a warning.
    """
    usable = [(k, v) for k, v in pairs if v is not None]
    n_dropped = len(pairs) - len(usable)
    if n_dropped:
        log.warning(
            f"{description}: dropped {n_dropped} rows with a missing or "
            f"invalid value in {value_column!r}"
        )
    return usable


def remove_duplicate_pairs(
    pairs: List[Tuple[IdentifierKey, T]], description: str, what: str
) -> List[Tuple[IdentifierKey, T]]:
    """
    Removes fully duplicated (identifier, value) pairs, keeping the first of
    each and preserving order. These are harmless, e.g. from repeated
    extraction.
    """
    unique = list(dict.fromkeys(pairs))
    n_removed = len(pairs) - len(unique)
    if n_removed:
        log.warning(
            f"{description} has duplicate identifier-{what} pairs. "
            f"Removed {n_removed} duplicates."
        )
    return unique


def require_unique(
    values: Iterable[object],
    error_class: Type[IntegrityError],
    message: str,
) -> None:
    """
    Raises ``error_class`` if any value occurs more than once.
    """
    counts = Counter(values)
    duplicates = sorted(str(v) for v, n in counts.items() if n > 1)
    if duplicates:
        shown = duplicates[:N_BAD_VALUES_TO_SHOW]
        more = len(duplicates) - len(shown)
        raise error_class(
            f"{message} ({len(duplicates)} affected: {shown!r}"
            f"{f' and {more} more' if more else ''})"
        )


def read_token_pairs(
    source: CrosswalkSource,
    identifier_column: str,
    token_column: str,
    compare_numeric: bool,
    separator: str = COMMA,
) -> List[Tuple[IdentifierKey, str]]:
    """
    Reads and validates identifier-token pairs.

    Raises:
        :exc:`DuplicateIdentifierError`, :exc:`DuplicateTokenError`
    """
    description = describe_source(source)
    pairs = read_pairs(
        source,
        identifier_column=identifier_column,
        value_column=token_column,
        convert=parse_token,
        compare_numeric=compare_numeric,
        separator=separator,
    )
    pairs = remove_duplicate_pairs(pairs, description, "token")
    require_unique(
        (k for k, _ in pairs),
        DuplicateIdentifierError,
        f"Crosswalk not 1-1: in {description}, one identifier "
        f"({identifier_column!r}) has multiple tokens ({token_column!r})",
    )
    require_unique(
        (t for _, t in pairs if t is not None),
        DuplicateTokenError,
        f"Crosswalk not 1-1: in {description}, one token ({token_column!r}) "
        f"has multiple identifiers ({identifier_column!r})",
    )
    pairs = drop_missing_values(pairs, description, token_column)
    log.info(f"{len(pairs)} unique rows in {description}")
    return pairs


def read_day_offset_pairs(
    source: CrosswalkSource,
    identifier_column: str,
    offset_column: str,
    compare_numeric: bool,
    separator: str = COMMA,
) -> List[Tuple[IdentifierKey, int]]:
    """
    Reads and validates identifier-day-offset pairs.

    Raises:
        :exc:`DuplicateIdentifierError`
    """
    description = describe_source(source)
    pairs = read_pairs(
        source,
        identifier_column=identifier_column,
        value_column=offset_column,
        convert=parse_day_offset,
        compare_numeric=compare_numeric,
        separator=separator,
    )
    pairs = remove_duplicate_pairs(pairs, description, "date shift")
    require_unique(
        (k for k, _ in pairs),
        DuplicateIdentifierError,
        f"Crosswalk not 1-1: in {description}, one identifier "
        f"({identifier_column!r}) has multiple date shifts "
        f"({offset_column!r})",
    )
    pairs = drop_missing_values(pairs, description, offset_column)
    log.info(f"{len(pairs)} unique rows in {description}")
    return pairs


# =============================================================================
# Building the crosswalk
# =============================================================================


def build_crosswalk(
    token_source: CrosswalkSource = None,
    offset_source: CrosswalkSource = None,
    token_identifier_column: str = CrosswalkDefaults.IDENTIFIER,
    token_column: str = CrosswalkDefaults.TOKEN,
    offset_identifier_column: str = CrosswalkDefaults.IDENTIFIER,
    offset_column: str = CrosswalkDefaults.DAY_OFFSET,
    compare_numeric: bool = True,
    separator: str = COMMA,
) -> Crosswalk:
    """
    Reads, checks, and (if both are given) merges token and day-offset
    crosswalk sources.

    Args:
        token_source:
            Filename of (or table holding) the identifier-token crosswalk.
        offset_source:
            Filename of (or table holding) the identifier-day-offset
            crosswalk.
        token_identifier_column:
            Identifier column in the token source.
        token_column:
            Token column in the token source.
        offset_identifier_column:
            Identifier column in the day-offset source.
        offset_column:
            Day-offset column in the day-offset source. Values may be quoted;
            they are read as text and converted.
        compare_numeric:
            Key identifiers by numeric value, tolerating leading zeros lost
            by some systems? If not, the exact text is used. Files to be
            de-identified must be matched using the same convention.
        separator:
            Field separator for the source files.

    Returns:
        a :class:`Crosswalk`

    Raises:
        :exc:`ConfigurationError` if neither source is given;
        :exc:`ColumnNotFoundError` if a named column is absent;
        :exc:`IntegrityError` if a source is not 1-to-1 after removing
        fully duplicated rows.
    """
    if token_source is None and offset_source is None:
        raise ConfigurationError(
            "Must provide a token crosswalk and/or a date shift crosswalk"
        )
    if not isinstance(compare_numeric, bool):
        raise ConfigurationError("compare_numeric must be True or False")

    offsets = None  # type: Optional[List[Tuple[IdentifierKey, int]]]
    tokens = None  # type: Optional[List[Tuple[IdentifierKey, str]]]
    if offset_source is not None:
        offsets = read_day_offset_pairs(
            offset_source,
            identifier_column=offset_identifier_column,
            offset_column=offset_column,
            compare_numeric=compare_numeric,
            separator=separator,
        )
    if token_source is not None:
        tokens = read_token_pairs(
            token_source,
            identifier_column=token_identifier_column,
            token_column=token_column,
            compare_numeric=compare_numeric,
            separator=separator,
        )

    if tokens is not None and offsets is not None:
        # Inner join: only keep identifiers that have both.
        offset_map = dict(offsets)
        entries = [
            CrosswalkEntry(k, token=t, day_offset=offset_map[k])
            for k, t in tokens
            if k in offset_map
        ]
        n_token_only = len(tokens) - len(entries)
        n_offset_only = len(offsets) - len(entries)
        if n_token_only or n_offset_only:
            log.info(
                f"Merging crosswalks: dropped {n_token_only} identifiers "
                f"with a token but no date shift, and {n_offset_only} with a "
                f"date shift but no token"
            )
    elif tokens is not None:
        entries = [CrosswalkEntry(k, token=t) for k, t in tokens]
    else:
        entries = [CrosswalkEntry(k, day_offset=d) for k, d in offsets]

    crosswalk = Crosswalk(
        entries,
        compare_numeric=compare_numeric,
        has_tokens=tokens is not None,
        has_day_offsets=offsets is not None,
    )
    log.info(f"Crosswalk has {len(crosswalk)} identifiers")
    return crosswalk
