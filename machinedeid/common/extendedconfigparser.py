#!/usr/bin/env python

"""
machinedeid/common/extendedconfigparser.py

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

**INI file parser with typed, validated getters.**

Used for MachineDeID config files: one ``[crosswalk]`` section plus one
section per type of device export. Option names are case-sensitive if
requested (column names often aren't lower-case), ``%`` is literal (date
formats use it), and ``#`` or ``;`` start a comment, even mid-line.

"""

import configparser
import logging
from typing import Dict, Generator, List, Optional

log = logging.getLogger(__name__)


def configfail(errmsg: str) -> None:
    """
    Logs a critical error and raises :exc:`ValueError`.
    """
    log.critical(errmsg)
    raise ValueError(errmsg)


def gen_lines(multiline: str) -> Generator[str, None, None]:
    """
    Yields the non-blank lines of a multi-line value, stripped.
    """
    for line in multiline.splitlines():
        line = line.strip()
        if line:
            yield line


class ExtendedConfigParser(configparser.ConfigParser):
    """
    ``configparser.ConfigParser`` with getters that complain (via
    :func:`configfail`) about missing or malformed settings.
    """

    def __init__(self, *args, case_sensitive: bool = False, **kwargs) -> None:
        kwargs["interpolation"] = None
        kwargs["inline_comment_prefixes"] = ("#", ";")
        super().__init__(*args, **kwargs)
        if case_sensitive:
            self.optionxform = str

    def where(self, section: str, option: str = None) -> str:
        """
        Describes a location in the config, for error messages.
        """
        if option is None:
            return f"Config section [{section}]"
        return f"Config section [{section}], option {option!r}"

    def require_section(self, section: str) -> None:
        """
        Raises :exc:`ValueError` if the section is absent.
        """
        if not self.has_section(section):
            configfail(
                f"Config has no section [{section}]; sections are "
                f"{self.sections()!r}"
            )

    def get_str(
        self,
        section: str,
        option: str,
        required: bool = False,
        default: str = None,
    ) -> Optional[str]:
        """
        Returns a single string setting.

        Args:
            section: section name
            option: option name
            required: must the option be present and non-blank?
            default: value if the option is absent (not with ``required``)
        """
        assert not (required and default is not None), (
            "Can't have a default for a required option"
        )
        value = self.get(section, option, fallback=default)
        if required and not value:
            configfail(f"{self.where(section, option)}: missing")
        return value

    def get_lines(
        self, section: str, option: str, required: bool = False
    ) -> List[str]:
        """
        Returns a multi-line setting as a list of stripped, non-blank lines.
        Each line may contain spaces (e.g. a column name).
        """
        lines = list(gen_lines(self.get(section, option, fallback="")))
        if required and not lines:
            configfail(f"{self.where(section, option)}: missing")
        return lines

    def get_mapping(
        self, section: str, option: str, delimiter: str
    ) -> Dict[str, Optional[str]]:
        """
        Returns a multi-line setting whose lines are ``key`` or
        ``key <delimiter> value``, as a dictionary in the order given.
        A key without a value maps to ``None``.

        Raises:
            :exc:`ValueError` for a blank or repeated key.
        """
        result = {}  # type: Dict[str, Optional[str]]
        for line in self.get_lines(section, option):
            key, _, value = line.partition(delimiter)
            key = key.strip()
            if not key:
                configfail(
                    f"{self.where(section, option)}: no name in {line!r}"
                )
            if key in result:
                configfail(
                    f"{self.where(section, option)}: {key!r} given twice"
                )
            result[key] = value.strip() or None
        return result

    def get_bool(
        self, section: str, option: str, default: bool = None
    ) -> bool:
        """
        Returns a boolean setting (``yes``/``no``, ``true``/``false``,
        ``on``/``off``, ``1``/``0``). Without a default, the option is
        required.
        """
        try:
            result = self.getboolean(section, option, fallback=default)
        except ValueError:
            configfail(
                f"{self.where(section, option)}: not a boolean: "
                f"{self.get(section, option)!r}"
            )
        if result is None:
            configfail(f"{self.where(section, option)}: missing")
        return result
