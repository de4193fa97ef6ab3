#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
#  Copyright 2012 Unknown <diogo@arch>
#
#  This program is free software; you can redistribute it and/or modify
#  it under the terms of the GNU General Public License as published by
#  the Free Software Foundation; either version 2 of the License, or
#  (at your option) any later version.
#
#  This program is distributed in the hope that it will be useful,
#  but WITHOUT ANY WARRANTY; without even the implied warranty of
#  MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#  GNU General Public License for more details.
#
#  You should have received a copy of the GNU General Public License
#  along with this program; if not, write to the Free Software
#  Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston,
#  MA 02110-1301, USA.

"""
The `base` module includes the `Base` class, which is inherited by `Alignment`
and `AlignmentList` classes and provides several methods of general use,
such as alphabet validation and the setup of progress indicators.

It also defines the `CleanUp` decorator used by TriMSA to handle errors
and keyboard interruptions during its execution, the `print_col` function
used for terminal logging and the format detection, natural sorting and
parsimony informative site counting functions shared by the process
modules.
"""

from trimsa.process.error_handling import TriMSAError, UnknownFormat, \
    InvalidSequence, OutputCollision

import os
import re
import sys
import time
import shutil
import traceback

import numpy as np

# Characters accepted in nucleotide sequences. Includes the IUPAC
# ambiguity codes plus the missing data and gap symbols
dna_alphabet = frozenset("?-ACGTRYSWKMBDHVNacgtryswkmbdhvn.")

# Characters accepted in protein sequences
aa_alphabet = frozenset("?-ARNDCQEGHILKMFPSTWYVXBZJU*.~")

# Only these nucleotide characters are considered when counting
# parsimony informative sites
dna_chars = np.frombuffer(b"ACGTacgt", dtype=np.uint8)

# Protein characters that are ignored when counting parsimony
# informative sites
aa_ambiguous = np.frombuffer(b"XBZJU?-.~*", dtype=np.uint8)

# Symbols that represent missing data or gaps
missing_symbols = ("-", "?")

# Maps file extensions to alignment formats for automatic detection
format_extensions = {"fas": "fasta", "fa": "fasta", "fasta": "fasta",
                     "nex": "nexus", "nexus": "nexus",
                     "phy": "phylip", "phylip": "phylip"}

# Glob patterns used to find alignment files of a given format in a
# directory
format_globs = {"fasta": "*.fa*", "nexus": "*.nex*", "phylip": "*.phy*"}

# Extension of the output files for each output format
output_extensions = {"fasta": ".fas", "nexus": ".nex", "phylip": ".phy"}

input_formats = ("auto", "fasta", "nexus", "phylip")

output_formats = ("fasta", "nexus", "phylip", "fasta-int", "nexus-int",
                  "phylip-int")

partition_formats = ("charset", "charset-codon", "nexus", "nexus-codon",
                     "raxml", "raxml-codon")

datatypes = ("dna", "aa", "ignore")


class CleanUp(object):
    """Decorator class that wraps the execution of the TriMSA program.

    This decorator class wraps the main execution function of TriMSA. The
    only requirement of `func` is that its first argument is the argparse
    namespace (that is, the arguments must be parsed before calling the
    main function). It clocks the execution, reports errors raised by
    the process modules in the terminal and removes any partially written
    output registered in the `temp_paths` attribute of the namespace.

    Parameters
    ----------
    func : function
        Main function of TriMSA

    Attributes
    ----------
    func : function
        Main function of TriMSA

    See Also
    --------
    print_col
    """

    def __init__(self, func):
        self.func = func

    def _remove_temp(self, arg):

        for path in getattr(arg, "temp_paths", []):
            if os.path.isdir(path):
                shutil.rmtree(path)
            elif os.path.exists(path):
                os.remove(path)

    def __call__(self, *args):
        """Wraps the call of `func`.

        Parameters
        ----------
        args : list
            Arbitrary list of positional arguments of `func`. The only
            requirement is that the first element is the argparse namespace
            object.
        """

        try:
            # Set starting time for clocking execution duration
            start_time = time.time()

            res = self.func(*args)

            if not args[0].quiet:
                print_col("Program execution successfully completed in %s "
                          "seconds" % (round(time.time() - start_time, 2)),
                          GREEN)

            return res

        # Handle execution termination via Ctrl+C
        except KeyboardInterrupt:
            self._remove_temp(args[0])
            print_col("Interrupting, by your command", RED)

        except TriMSAError as e:
            self._remove_temp(args[0])
            print_col(str(e), RED)

        # The broad exception handling is used to remove partial output
        # under any circumstances
        except Exception:
            traceback.print_exc()
            self._remove_temp(args[0])
            print_col("Program exited with errors!", RED)


def _has_colours(stream):
    if not hasattr(stream, "isatty"):
        return False
    if not stream.isatty():
        return False # auto color only on TTYs
    try:
        import curses
        curses.setupterm()
        return curses.tigetnum("colors") > 2
    except Exception:
        # guess false in case of error
        return False

# Support for terminal colors
BLACK, RED, GREEN, YELLOW, BLUE, MAGENTA, CYAN, WHITE = range(8)
has_colours = _has_colours(sys.stdout)


def print_col(text, color, quiet=False):
    """Custom print function for terminal updates of the CLI program.

    This print function homogenizes the progress logging of TriMSA while
    providing some freedom on the formatting of the progress message,
    namely the colors of the messages. The colors in use are green for
    normal logging, yellow for warnings and red for errors. The final
    formatting of the message is something like:

    [TriMSA[-Error/Warning]] <message>

    Parameters
    ----------
    text : str
        The message that will appear in the terminal
    color : variable reference
        Reference to the terminal colors defined in process.base. The
        options are: {GREEN, YELLOW, RED}
    quiet : bool
        Determines whether the message is logged. If True, no messages are
        printed to the terminal. Error messages are always printed.

    Raises
    ------
    SystemExit
        When `color` is RED. Errors terminate the program.
    """

    if not quiet or color == RED:
        suf = {GREEN: "[TriMSA] ", YELLOW: "[TriMSA-Warning] ",
               RED: "[TriMSA-Error] "}
        if has_colours:
            seq = "\x1b[1;%dm" % (30 + color) + suf[color] + "\x1b[0m" + text
            print(seq)
        else:
            print(suf[color] + text)

    if color == RED:
        raise SystemExit(1)


def natural_key(path):
    """Sorting key that orders the digit runs of `path` by their value.

    With this key, "locus2.fas" is placed before "locus10.fas".
    """
    return [int(x) if x.isdigit() else x for x in re.split(r"(\d+)", path)]


def natural_sort(paths):
    return sorted(paths, key=natural_key)


def guess_format(path):
    """Infers the alignment format of `path` from its extension.

    Parameters
    ----------
    path : str
        Path to alignment file.

    Returns
    -------
    str
        One of "fasta", "nexus" or "phylip".

    Raises
    ------
    UnknownFormat
        When the extension is not associated with any supported format.
    """

    ext = os.path.splitext(path)[1].lstrip(".").lower()

    try:
        return format_extensions[ext]
    except KeyError:
        raise UnknownFormat("Cannot infer the format of {} from its "
                            "extension. Specify the input format "
                            "explicitly.".format(path))


def split_output_format(output_format):
    """Separates an output format tag in its format and interleave flag.

    "nexus-int" becomes ("nexus", True) and "fasta" becomes
    ("fasta", False).
    """
    fmt, _, suffix = output_format.partition("-")
    return fmt, suffix == "int"


def is_valid_dna(sequence):
    return dna_alphabet.issuperset(sequence)


def is_valid_aa(sequence):
    return aa_alphabet.issuperset(sequence.upper())


def check_output_path(path, force=False):
    """Guards against overwriting an existing output path.

    Parameters
    ----------
    path : str
        Output file or directory.
    force : bool
        If True, an existing `path` is removed. Otherwise, its existence
        is an error.

    Raises
    ------
    OutputCollision
        When `path` exists and `force` is False.
    """

    if not os.path.exists(path):
        return

    if not force:
        raise OutputCollision("The output path {} already exists. Use the "
                              "force option to overwrite it.".format(path))

    if os.path.isdir(path):
        shutil.rmtree(path)
    else:
        os.remove(path)


def count_informative_sites(sequences, datatype="dna"):
    """Counts the parsimony informative sites of a set of sequences.

    For each column, only the non-ambiguous characters are considered
    (ACGT for nucleotides, everything except XBZJU?-.~* for proteins). A
    column is informative when at least two distinct characters occur
    at least twice each.

    Parameters
    ----------
    sequences : iterable
        Aligned sequence strings.
    datatype : str
        "dna", "aa" or "ignore". "ignore" is counted as "dna".

    Returns
    -------
    int
        Number of parsimony informative columns.

    Examples
    --------
    >>> count_informative_sites(["AATT", "ATTA", "ATGC", "ATGA"])
    1
    """

    sequences = list(sequences)
    if not sequences:
        return 0

    length = max(len(x) for x in sequences)

    # Sequences are converted to a taxa x columns byte matrix. Shorter
    # sequences are padded with gaps, which are never counted
    data = np.vstack([np.frombuffer(
        x.ljust(length, "-").encode("ascii", "replace"), dtype=np.uint8)
        for x in sequences])

    if datatype == "aa":
        valid = ~np.isin(data, aa_ambiguous)
    else:
        valid = np.isin(data, dna_chars)

    informative = 0
    for column, mask in zip(data.T, valid.T):
        _, counts = np.unique(column[mask], return_counts=True)
        if len(counts) > 1 and np.count_nonzero(counts >= 2) >= 2:
            informative += 1

    return informative


class Base(object):

    def check_sequence(self, taxon, sequence):
        """Validates the characters of `sequence` against the alphabet of
        the `datatype` attribute.

        Parameters
        ----------
        taxon : str
            Name of the taxon, used in the error message.
        sequence : str
            Sequence string.

        Raises
        ------
        InvalidSequence
            When `sequence` has characters outside the alphabet.
        """

        if self.datatype == "dna" and not is_valid_dna(sequence):
            raise InvalidSequence(
                "The sequence {} in file {} is not a dna sequence. Check "
                "whether the sequence is amino acid".format(taxon, self.path))

        elif self.datatype == "aa" and not is_valid_aa(sequence):
            raise InvalidSequence(
                "The sequence {} in file {} is not an amino acid "
                "sequence".format(taxon, self.path))

    @staticmethod
    def _set_pipes(pbar=None, total=None):
        """Setup of the progress bar of a task.

        At the beginning of any given task, the ProgressBar object (`pbar`)
        is reset and its maximum value is set to the expected `total` of
        the task. Tasks finish the progress bar with `_reset_pipes`.

        Parameters
        ----------
        pbar : ProgressBar
            A ProgressBar object used to log the progress of TriMSA
            execution.
        total : int
            Expected total of the task's progress.

        See Also
        --------
        _update_pipes
        _reset_pipes
        """

        if pbar:
            pbar.start(max_value=total)

    @staticmethod
    def _update_pipes(pbar=None, value=None):
        if pbar:
            pbar.update(value)

    @staticmethod
    def _reset_pipes(pbar=None):
        if pbar:
            pbar.finish()


__author__ = "Diogo N. Silva"
