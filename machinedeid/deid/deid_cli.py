"""
machinedeid/deid/deid_cli.py

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

**Command-line interface to de-identify device exports.**

"""

import argparse
import logging
import sys
from typing import List, Optional, Tuple

from cardinal_pythonlib.file_io import smart_open
from cardinal_pythonlib.logs import main_only_quicksetup_rootlogger
from rich_argparse import ArgumentDefaultsRichHelpFormatter

from machinedeid.common.constants import EXIT_FAILURE, EXIT_SUCCESS
from machinedeid.common.exceptions import call_main_with_exception_reporting
from machinedeid.common.extendedconfigparser import ExtendedConfigParser
from machinedeid.deid.batch import deidentify_directory
from machinedeid.deid.columns import DeidConfig, resolve_separator
from machinedeid.deid.config import (
    crosswalk_from_config,
    deid_config_from_section,
    DEMO_CONFIG,
    filename_pattern_from_section,
    read_config_file,
)
from machinedeid.deid.constants import AUTO_OUTPUT, COMMA, CROSSWALK_SECTION
from machinedeid.deid.crosswalk import build_crosswalk, Crosswalk
from machinedeid.deid.deidentify import deidentify_file
from machinedeid.deid.errors import ConfigurationError, DeidError
from machinedeid.deid.presets import get_preset, PRESETS
from machinedeid.deid.table import write_table_to_file
from machinedeid.version import MACHINEDEID_VERSION_PRETTY

log = logging.getLogger(__name__)

STDOUT = "-"


# =============================================================================
# Constants
# =============================================================================


class Commands:
    FILE = "file"
    DIRECTORY = "directory"
    PRESETS = "presets"
    DEMO_CONFIG = "demo_config"


# =============================================================================
# Argument parsing
# =============================================================================


def add_file_type_options(parser: argparse.ArgumentParser) -> None:
    """
    Options saying what type of file this is: a config file section, or a
    preset.
    """
    arggroup = parser.add_argument_group("file type")
    arggroup.add_argument(
        "--config", help="Config file (see the demo_config command)"
    )
    arggroup.add_argument(
        "--section",
        help="Config file section describing this type of file",
    )
    arggroup.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        help="Use built-in settings for a type of device export, instead of "
        "a config file section",
    )


def add_crosswalk_options(parser: argparse.ArgumentParser) -> None:
    """
    Options for the crosswalk files (overriding any config file).
    """
    arggroup = parser.add_argument_group("crosswalk")
    arggroup.add_argument(
        "--token_file", help="Crosswalk file of identifiers and tokens"
    )
    arggroup.add_argument(
        "--offset_file",
        help="Crosswalk file of identifiers and day offsets (date shifts)",
    )
    arggroup.add_argument(
        "--crosswalk_separator",
        default=COMMA,
        help="Field separator for crosswalk files, if not using a config "
        "file ('comma', 'tab', or a single character)",
    )
    compare = arggroup.add_mutually_exclusive_group()
    compare.add_argument(
        "--compare_numeric",
        dest="compare_numeric",
        action="store_true",
        default=None,
        help="Compare identifiers as numbers (so '00123' matches '123'). "
        "The default comes from the config file or preset, and is otherwise "
        "numeric.",
    )
    compare.add_argument(
        "--compare_text",
        dest="compare_numeric",
        action="store_false",
        help="Compare identifiers as exact text",
    )


def add_basic_options(parser: argparse.ArgumentParser) -> None:
    arggroup = parser.add_argument_group("display options")
    arggroup.add_argument(
        "--verbose", "-v", action="store_true", help="Be verbose"
    )


def make_parser() -> argparse.ArgumentParser:
    """
    Returns the command-line parser.
    """
    # noinspection PyTypeChecker
    parser = argparse.ArgumentParser(
        description=f"De-identify tables exported by imaging and testing "
        f"devices, using a crosswalk of identifiers, tokens, and day "
        f"offsets. ({MACHINEDEID_VERSION_PRETTY})",
        formatter_class=ArgumentDefaultsRichHelpFormatter,
    )
    parser.add_argument(
        "--version", action="version", version=MACHINEDEID_VERSION_PRETTY
    )
    subparsers = parser.add_subparsers(
        title="commands",
        description="Valid commands are as follows.",
        help="Specify one command.",
        dest="command",
    )
    subparsers.required = True

    # -------------------------------------------------------------------------
    # file
    # -------------------------------------------------------------------------
    file_parser = subparsers.add_parser(
        Commands.FILE,
        help="De-identify a single file",
        formatter_class=ArgumentDefaultsRichHelpFormatter,
    )
    file_parser.add_argument("input", help="File to de-identify")
    file_parser.add_argument(
        "--output",
        default=AUTO_OUTPUT,
        help=f"Output file. Use {AUTO_OUTPUT!r} to write 'deid_' plus the "
        f"input file's name, in the same directory, or {STDOUT!r} for "
        f"stdout.",
    )
    add_file_type_options(file_parser)
    add_crosswalk_options(file_parser)
    add_basic_options(file_parser)

    # -------------------------------------------------------------------------
    # directory
    # -------------------------------------------------------------------------
    dir_parser = subparsers.add_parser(
        Commands.DIRECTORY,
        help="De-identify all matching files in a directory",
        formatter_class=ArgumentDefaultsRichHelpFormatter,
    )
    dir_parser.add_argument("source_dir", help="Directory to scan")
    dir_parser.add_argument(
        "--output_dir",
        help="Output directory (default: 'deidentified' within the source "
        "directory)",
    )
    dir_parser.add_argument(
        "--filename_pattern",
        help="Regular expression for the names of files to process "
        "(overriding the config file or preset)",
    )
    add_file_type_options(dir_parser)
    add_crosswalk_options(dir_parser)
    add_basic_options(dir_parser)

    # -------------------------------------------------------------------------
    # presets
    # -------------------------------------------------------------------------
    presets_parser = subparsers.add_parser(
        Commands.PRESETS,
        help="List the built-in device presets",
        formatter_class=ArgumentDefaultsRichHelpFormatter,
    )
    add_basic_options(presets_parser)

    # -------------------------------------------------------------------------
    # demo_config
    # -------------------------------------------------------------------------
    demo_parser = subparsers.add_parser(
        Commands.DEMO_CONFIG,
        help="Print a demonstration config file",
        formatter_class=ArgumentDefaultsRichHelpFormatter,
    )
    demo_parser.add_argument(
        "--output", default=STDOUT, help="File for output; use '-' for stdout"
    )
    add_basic_options(demo_parser)

    return parser


# =============================================================================
# Helpers
# =============================================================================


def get_file_type(
    args: argparse.Namespace,
) -> Tuple[DeidConfig, Optional[str], Optional[ExtendedConfigParser]]:
    """
    Returns the de-identification config, the filename pattern (if known),
    and the config file parser (if a config file was used).
    """
    if args.preset:
        if args.section:
            raise ConfigurationError("Specify --section or --preset, not both")
        preset = get_preset(args.preset)
        log.info(f"Using preset {preset.name!r}: {preset.description}")
        cfgparser = read_config_file(args.config) if args.config else None
        return preset.make_config(), preset.filename_pattern, cfgparser
    if not args.config or not args.section:
        raise ConfigurationError(
            "Specify --preset, or both --config and --section"
        )
    cfgparser = read_config_file(args.config)
    config = deid_config_from_section(cfgparser, args.section)
    pattern = filename_pattern_from_section(cfgparser, args.section)
    return config, pattern, cfgparser


def get_crosswalk(
    args: argparse.Namespace,
    config: DeidConfig,
    cfgparser: Optional[ExtendedConfigParser],
) -> Crosswalk:
    """
    Builds the crosswalk from the config file's ``[crosswalk]`` section (if
    there is one) and the command-line options.
    """
    compare_numeric = args.compare_numeric
    if compare_numeric is None:
        compare_numeric = config.compare_numeric
    if cfgparser is not None and cfgparser.has_section(CROSSWALK_SECTION):
        return crosswalk_from_config(
            cfgparser,
            token_file=args.token_file,
            offset_file=args.offset_file,
            compare_numeric=compare_numeric,
        )
    return build_crosswalk(
        token_source=args.token_file,
        offset_source=args.offset_file,
        compare_numeric=True if compare_numeric is None else compare_numeric,
        separator=resolve_separator(args.crosswalk_separator),
    )


# =============================================================================
# Main
# =============================================================================


def inner_main(argv: List[str] = None) -> int:
    """
    Indirect command-line entry point. See command-line help.

    Returns:
        program exit status code
    """
    parser = make_parser()
    args = parser.parse_args(argv)
    main_only_quicksetup_rootlogger(
        level=logging.DEBUG if args.verbose else logging.INFO
    )
    log.debug(f"Command: {args.command}")

    if args.command == Commands.DEMO_CONFIG:
        with smart_open(args.output, "w") as f:
            print(DEMO_CONFIG.strip(), file=f)
        return EXIT_SUCCESS

    elif args.command == Commands.PRESETS:
        for preset in PRESETS.values():
            print(
                f"{preset.name}: {preset.description} "
                f"(files matching {preset.filename_pattern!r})"
            )
        return EXIT_SUCCESS

    elif args.command == Commands.FILE:
        config, _, cfgparser = get_file_type(args)
        crosswalk = get_crosswalk(args, config, cfgparser)
        to_stdout = args.output == STDOUT
        table, _ = deidentify_file(
            args.input,
            config,
            crosswalk,
            output_filename=None if to_stdout else args.output,
        )
        if to_stdout:
            write_table_to_file(
                table, sys.stdout, separator=config.output_separator
            )
        return EXIT_SUCCESS

    elif args.command == Commands.DIRECTORY:
        config, pattern, cfgparser = get_file_type(args)
        pattern = args.filename_pattern or pattern
        if not pattern:
            raise ConfigurationError(
                "No filename pattern: use --filename_pattern, or set "
                "filename_pattern in the config file section"
            )
        crosswalk = get_crosswalk(args, config, cfgparser)
        result = deidentify_directory(
            source_dir=args.source_dir,
            filename_pattern=pattern,
            crosswalk=crosswalk,
            config=config,
            output_dir=args.output_dir,
        )
        return EXIT_SUCCESS if result.ok else EXIT_FAILURE

    else:
        # Shouldn't get here.
        log.error(f"Unknown command: {args.command}")
        return EXIT_FAILURE


def main() -> None:
    """
    Command-line entry point.
    """
    call_main_with_exception_reporting(
        inner_main, user_errors=(DeidError, ValueError)
    )


if __name__ == "__main__":
    main()
