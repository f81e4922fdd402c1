#!/usr/bin/env python

"""
machinedeid/common/exceptions.py

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

**Exception reporting for command-line entry points.**

Problems the user can fix (a bad config file, a crosswalk with duplicate
identifiers, a missing column) are reported as a single log line; anything
else is reported with its traceback.

"""

import logging
import sys
import traceback
from typing import Callable, Optional, Tuple, Type

from machinedeid.common.constants import EXIT_FAILURE, EXIT_SUCCESS

log = logging.getLogger(__name__)


def report_exception(exc: BaseException, with_traceback: bool = True) -> None:
    """
    Logs an exception's message at CRITICAL level, and optionally its
    traceback at ERROR level.
    """
    log.critical(f"{type(exc).__name__}: {exc}")
    if with_traceback:
        log.error(
            "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            )
        )


def call_main_with_exception_reporting(
    main_function: Callable[[], Optional[int]],
    user_errors: Tuple[Type[BaseException], ...] = (),
) -> None:
    """
    Runs ``main_function`` and exits the process with its return code
    (``EXIT_SUCCESS`` if it returns ``None``). If it raises, reports the
    exception and exits with ``EXIT_FAILURE``.

    Args:
        main_function:
            function taking no arguments
        user_errors:
            exception types to report without a traceback
    """
    try:
        result = main_function()
    except user_errors as exc:
        report_exception(exc, with_traceback=False)
        sys.exit(EXIT_FAILURE)
    except Exception as exc:
        report_exception(exc)
        sys.exit(EXIT_FAILURE)
    sys.exit(EXIT_SUCCESS if result is None else result)
