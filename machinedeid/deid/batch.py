"""
machinedeid/deid/batch.py

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

**De-identify every matching file in a directory.**

Outputs go to a separate directory (by default, a ``deidentified``
subdirectory of the source directory) with the same base names. One crosswalk
is shared by all files. A fatal error in one file is logged and recorded, and
the batch moves on to the next file.

"""

from dataclasses import dataclass, field
import logging
import os
from typing import Dict, List, Union

from cardinal_pythonlib.fileops import mkdir_p
import regex

from machinedeid.deid.columns import DeidConfig
from machinedeid.deid.constants import DEFAULT_OUTPUT_SUBDIR
from machinedeid.deid.crosswalk import Crosswalk
from machinedeid.deid.deidentify import DeidReport, deidentify_file
from machinedeid.deid.errors import ConfigurationError, DeidError
from machinedeid.deid.table import PathType

log = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """
    Outcome of de-identifying a directory.
    """

    output_dir: str = None
    outputs: List[str] = field(default_factory=list)
    reports: Dict[str, DeidReport] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    def __len__(self) -> int:
        return len(self.outputs) + len(self.failures)


def find_source_files(
    source_dir: PathType, filename_pattern: Union[str, "regex.Pattern"]
) -> List[str]:
    """
    Returns the full paths of files directly within ``source_dir`` whose
    names match (are found by a search for) the regular expression, sorted.
    """
    if isinstance(filename_pattern, str):
        try:
            filename_pattern = regex.compile(filename_pattern)
        except regex.error as e:
            raise ConfigurationError(
                f"Bad filename pattern {filename_pattern!r}: {e}"
            )
    source_dir = str(source_dir)
    if not os.path.isdir(source_dir):
        raise ConfigurationError(f"Not a directory: {source_dir}")
    return [
        os.path.join(source_dir, name)
        for name in sorted(os.listdir(source_dir))
        if filename_pattern.search(name)
        and os.path.isfile(os.path.join(source_dir, name))
    ]


def deidentify_directory(
    source_dir: PathType,
    filename_pattern: str,
    crosswalk: Crosswalk,
    config: DeidConfig,
    output_dir: PathType = None,
) -> BatchResult:
    """
    De-identifies every file in ``source_dir`` whose name matches
    ``filename_pattern``.

    Args:
        source_dir:
            Directory to scan (not recursively).
        filename_pattern:
            Regular expression for the file names, e.g.
            ``r"^metadata\\.tsv$"``.
        crosswalk:
            The :class:`Crosswalk`, shared by every file.
        config:
            The :class:`DeidConfig` for this type of file.
        output_dir:
            Output directory; by default, ``deidentified`` within
            ``source_dir``. Created if necessary.

    Returns:
        a :class:`BatchResult`

    Raises:
        :exc:`ConfigurationError` for a bad pattern, a missing source
        directory, or an output directory that is the source directory.
        Errors in individual files are recorded, not raised.
    """
    sourcefiles = find_source_files(source_dir, filename_pattern)
    if output_dir is None:
        output_dir = os.path.join(str(source_dir), DEFAULT_OUTPUT_SUBDIR)
    output_dir = str(output_dir)
    if os.path.abspath(output_dir) == os.path.abspath(str(source_dir)):
        raise ConfigurationError(
            f"Output directory must differ from source directory: "
            f"{output_dir}"
        )
    result = BatchResult(output_dir=output_dir)
    if not sourcefiles:
        log.warning(
            f"No files in {source_dir} matched pattern {filename_pattern!r}"
        )
        return result
    log.info(f"{len(sourcefiles)} files to de-identify in {source_dir}")
    mkdir_p(output_dir)

    for sourcefile in sourcefiles:
        outfile = os.path.join(output_dir, os.path.basename(sourcefile))
        log.info(f"De-identifying {sourcefile} ...")
        try:
            _, report = deidentify_file(
                sourcefile, config, crosswalk, output_filename=outfile
            )
        except (DeidError, OSError, UnicodeDecodeError) as e:
            log.error(f"Failed to de-identify {sourcefile}: {e}")
            result.failures[sourcefile] = str(e)
            continue
        result.outputs.append(outfile)
        result.reports[sourcefile] = report

    log.info(
        f"De-identified {len(result.outputs)} of {len(sourcefiles)} files "
        f"into {output_dir}"
    )
    if result.failures:
        log.warning(
            f"{len(result.failures)} files failed: "
            f"{sorted(result.failures)!r}"
        )
    return result
