"""
machinedeid/deid/columns.py

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

**What to do with each column of a file to be de-identified.**

Every column has exactly one action: it is the identifier (replaced by its
token), or it is removed, blanked, date-shifted, date/time-shifted,
epoch-shifted, or passed through unchanged. Asking for two actions on one
column is a configuration error, detected when the configuration is built.

"""

from enum import Enum
import logging
from typing import (
    Dict,
    Iterable,
    List,
    Mapping,
    NamedTuple,
    Optional,
    Union,
)

from machinedeid.deid.constants import (
    COMMA,
    DEFAULT_DATE_FORMAT,
    DEFAULT_DATETIME_FORMAT,
    SEPARATOR_NAMES,
)
from machinedeid.deid.errors import ConfigurationError
from machinedeid.deid.timeformats import (
    DateFormat,
    DateTimeFormat,
    TimeFormat,
)

log = logging.getLogger(__name__)

ColumnNames = Union[str, Iterable[str]]
TimeColumns = Union[str, Iterable[str], Mapping[str, str]]


# =============================================================================
# Column actions
# =============================================================================


class ColumnAction(Enum):
    REMOVE = "remove"
    BLANK = "blank"
    SHIFT_DATE = "shift_date"
    SHIFT_DATETIME = "shift_datetime"
    SHIFT_EPOCH = "shift_epoch"
    PASSTHROUGH = "passthrough"


SHIFT_ACTIONS = (
    ColumnAction.SHIFT_DATE,
    ColumnAction.SHIFT_DATETIME,
    ColumnAction.SHIFT_EPOCH,
)


class ColumnRule(NamedTuple):
    """
    An action, plus (for date/datetime shifts) the compiled input format.
    """

    action: ColumnAction
    timeformat: Optional[TimeFormat] = None


PASSTHROUGH_RULE = ColumnRule(ColumnAction.PASSTHROUGH)


# =============================================================================
# Helpers
# =============================================================================


def resolve_separator(separator: str) -> str:
    """
    Returns a single-character field separator, from either the character
    itself or a name such as ``tab`` or ``comma``.

    Raises:
        :exc:`ConfigurationError` if it is neither.
    """
    if separator is None:
        raise ConfigurationError("No field separator specified")
    named = SEPARATOR_NAMES.get(separator.strip().lower())
    if named:
        return named
    if separator == "\\t":
        return "\t"
    if len(separator) != 1:
        raise ConfigurationError(
            f"Field separator must be a single character or one of "
            f"{sorted(SEPARATOR_NAMES)}; was {separator!r}"
        )
    return separator


def as_name_list(names: Optional[ColumnNames]) -> List[str]:
    """
    Accepts a single column name or several, returning a de-duplicated list
    in the original order.
    """
    if names is None:
        return []
    if isinstance(names, str):
        names = [names]
    return list(dict.fromkeys(names))


def as_format_dict(
    columns: Optional[TimeColumns], default_format: str
) -> Dict[str, str]:
    """
    Accepts column names (which get the default format) or a mapping of
    column name to format, returning the mapping.
    """
    if columns is None:
        return {}
    if isinstance(columns, Mapping):
        return {
            name: (fmt or default_format) for name, fmt in columns.items()
        }
    return {name: default_format for name in as_name_list(columns)}


# =============================================================================
# DeidConfig
# =============================================================================


class DeidConfig:
    """
    Configuration for de-identifying one kind of file.
    """

    def __init__(
        self,
        identifier_column: str,
        columns_to_remove: ColumnNames = (),
        columns_to_blank: ColumnNames = (),
        date_columns: TimeColumns = (),
        datetime_columns: TimeColumns = (),
        epoch_columns: ColumnNames = (),
        date_format: str = DEFAULT_DATE_FORMAT,
        datetime_format: str = DEFAULT_DATETIME_FORMAT,
        separator: str = COMMA,
        output_separator: str = None,
        compare_numeric: bool = None,
    ) -> None:
        """
        Args:
            identifier_column:
                Column holding the identifier, to be replaced by its token.
            columns_to_remove:
                Columns to drop entirely. They are never read into memory.
            columns_to_blank:
                Columns to keep, but with every value missing.
            date_columns:
                Date columns to shift: names (using ``date_format``), or a
                mapping from name to format.
            datetime_columns:
                Date/time columns to shift: names (using
                ``datetime_format``), or a mapping from name to format.
            epoch_columns:
                Columns of seconds since 1970-01-01 UTC, to shift.
            date_format:
                Default input format for date columns.
            datetime_format:
                Default input format for date/time columns.
            separator:
                Input field separator (character, or a name such as
                ``tab``).
            output_separator:
                Output field separator; by default, the input separator.
            compare_numeric:
                Compare identifiers numerically? By default, use the
                convention the crosswalk was built with.

        Raises:
            :exc:`ConfigurationError` if a column is given more than one
            action, or a time format is unsupported.
        """
        if not identifier_column:
            raise ConfigurationError("No identifier column specified")
        if compare_numeric is not None and not isinstance(
            compare_numeric, bool
        ):
            raise ConfigurationError(
                "compare_numeric must be True, False, or None"
            )
        self.identifier_column = identifier_column
        self.separator = resolve_separator(separator)
        self.output_separator = (
            resolve_separator(output_separator)
            if output_separator is not None
            else self.separator
        )
        self.compare_numeric = compare_numeric
        self.rules = {}  # type: Dict[str, ColumnRule]

        for name in as_name_list(columns_to_remove):
            self._add_rule(name, ColumnRule(ColumnAction.REMOVE))
        for name in as_name_list(columns_to_blank):
            self._add_rule(name, ColumnRule(ColumnAction.BLANK))
        for name, fmt in as_format_dict(date_columns, date_format).items():
            self._add_rule(
                name, ColumnRule(ColumnAction.SHIFT_DATE, DateFormat(fmt))
            )
        for name, fmt in as_format_dict(
            datetime_columns, datetime_format
        ).items():
            self._add_rule(
                name,
                ColumnRule(ColumnAction.SHIFT_DATETIME, DateTimeFormat(fmt)),
            )
        for name in as_name_list(epoch_columns):
            self._add_rule(name, ColumnRule(ColumnAction.SHIFT_EPOCH))

    def _add_rule(self, colname: str, rule: ColumnRule) -> None:
        if colname == self.identifier_column:
            raise ConfigurationError(
                f"Column {colname!r} is the identifier column, so cannot "
                f"also be given the action {rule.action.value!r}"
            )
        existing = self.rules.get(colname)
        if existing is not None:
            raise ConfigurationError(
                f"Column {colname!r} is given two actions: "
                f"{existing.action.value!r} and {rule.action.value!r}"
            )
        self.rules[colname] = rule

    def __repr__(self) -> str:
        rules = ", ".join(
            f"{name!r}: {rule.action.value}"
            + (f" {rule.timeformat.fmt!r}" if rule.timeformat else "")
            for name, rule in self.rules.items()
        )
        return (
            f"{self.__class__.__name__}("
            f"identifier_column={self.identifier_column!r}, "
            f"rules={{{rules}}}, "
            f"separator={self.separator!r}, "
            f"output_separator={self.output_separator!r}, "
            f"compare_numeric={self.compare_numeric!r})"
        )

    def rule(self, colname: str) -> ColumnRule:
        """
        Returns the rule for a column; unnamed columns pass through.
        """
        return self.rules.get(colname, PASSTHROUGH_RULE)

    def columns_with_action(self, action: ColumnAction) -> List[str]:
        """
        Names of columns with the given action, in configuration order.
        """
        return [
            name for name, rule in self.rules.items() if rule.action == action
        ]

    @property
    def columns_to_remove(self) -> List[str]:
        return self.columns_with_action(ColumnAction.REMOVE)

    @property
    def columns_to_blank(self) -> List[str]:
        return self.columns_with_action(ColumnAction.BLANK)

    @property
    def date_columns(self) -> List[str]:
        return self.columns_with_action(ColumnAction.SHIFT_DATE)

    @property
    def datetime_columns(self) -> List[str]:
        return self.columns_with_action(ColumnAction.SHIFT_DATETIME)

    @property
    def epoch_columns(self) -> List[str]:
        return self.columns_with_action(ColumnAction.SHIFT_EPOCH)

    @property
    def shift_columns(self) -> List[str]:
        """
        All columns to be date-, date/time-, or epoch-shifted.
        """
        return [
            name
            for name, rule in self.rules.items()
            if rule.action in SHIFT_ACTIONS
        ]

    @property
    def requires_day_offsets(self) -> bool:
        """
        Are any columns to be shifted (so the crosswalk must have day
        offsets)?
        """
        return bool(self.shift_columns)
