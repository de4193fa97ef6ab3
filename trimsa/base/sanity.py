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

from argparse import ArgumentTypeError
from glob import glob
import os

from trimsa.process.base import print_col, natural_sort, format_globs, \
    RED, YELLOW

# Groups of filter options. Each group is one filtering criterion
filter_criteria = [("min_taxa", "percent"), ("min_len", "max_len"),
                   ("min_pinf", "max_pinf", "percent_inf"), ("missing",),
                   ("contain_taxa", "taxa_file")]


def trimsa_arg_check(arg):

    if arg.command is None:
        print_col("A TriMSA command must be provided (concat, convert, "
                  "filter, split, partition, rename, remove, extract, "
                  "unalign, filter-seq or id)", RED)

    if not arg.infile and not getattr(arg, "directory", None):
        print_col("Input files must be provided with the '-in' or the '-d' "
                  "options", RED)

    if arg.command == "partition":
        if not arg.outfile:
            print_col("An output file must be provided with option '-o'",
                      RED)
        if arg.partition_format.startswith("charset"):
            print_col("Charset partitions can only be written to a nexus "
                      "alignment. Select the nexus partition format instead",
                      RED)
        if len(arg.infile or []) != 1:
            print_col("Only one partition file can be converted at a time",
                      RED)
        return 0

    if arg.command in ("concat", "filter", "split", "convert", "rename",
                       "remove", "extract", "unalign", "filter-seq") and \
            not arg.outfile:
        print_col("An output {} must be provided with option '-o'".format(
            "file" if arg.command == "concat" else "directory"), RED)

    if arg.command == "split":
        if len(arg.infile or []) != 1 or getattr(arg, "directory", None):
            print_col("Only one input file can be split at a time", RED)
        if not arg.partition_file:
            print_col("A partition file must be provided with option "
                      "'--partition-file'", RED)

    if arg.command == "filter":
        provided = [g for g in filter_criteria
                    if any(getattr(arg, x) not in (None, []) for x in g)]
        if not provided:
            print_col("A filtering criterion must be provided", RED)
        if len(provided) > 1:
            print_col("Only one filtering criterion is applied at a time. "
                      "Using the first of: {}".format(
                          " ".join("/".join(x) for x in provided)),
                      YELLOW, quiet=arg.quiet)
        if arg.summary and filter_criteria[2] not in provided:
            print_col("Ignoring the summary option (--summary) when not "
                      "filtering by informative sites", YELLOW,
                      quiet=arg.quiet)

    if arg.command == "unalign" and not arg.output_format.startswith("fasta"):
        print_col("Unaligned sequences can only be written in fasta format",
                  RED)

    if arg.command == "filter-seq":
        if arg.max_gap is None and arg.min_seq_len is None and \
                arg.max_seq_len is None:
            print_col("A sequence filtering criterion must be provided "
                      "(--max-gap, --min-seq-length or --max-seq-length)",
                      RED)
        elif arg.max_gap is not None and (arg.min_seq_len is not None or
                                          arg.max_seq_len is not None):
            print_col("Only one sequence filtering criterion is applied at "
                      "a time. Using --max-gap", YELLOW, quiet=arg.quiet)

    if arg.command == "rename" and arg.mapping is None and \
            arg.remove_string is None and arg.replace is None:
        print_col("Provide a rename file (--mapping), a string to remove "
                  "(--remove-string) or a string to replace (--replace)",
                  RED)

    if arg.command in ("remove", "extract") and not arg.taxa and \
            not arg.taxa_file and not arg.regex:
        print_col("Provide the taxa with the '--taxa', '--taxa-file' or "
                  "'--regex' options", RED)

    if arg.command == "concat":
        if len(arg.infile or []) == 1 and not arg.directory:
            print_col("Concatenating a single file. The output will have a "
                      "single partition", YELLOW, quiet=arg.quiet)
        if arg.partition_format.startswith("charset") and \
                not arg.output_format.startswith("nexus"):
            print_col("Charset partitions can only be embedded in nexus "
                      "files. Writing a nexus partition file instead",
                      YELLOW, quiet=arg.quiet)

    if arg.threads is not None and arg.threads < 1:
        print_col("The number of threads must be a positive integer", RED)

    return 0


def mfilters(filt):
    """
    Checks the type of the some filter options. Assures that the values
    are within the accepted boundaries of [0-100]. If the provided filter
    is a decimal, it converts to percentage automatically
    :param filt: (string) The value provided with the filter option
    :return: (float) The percentage, between 0 and 100
    """

    # Check if filt is convertable to float
    try:
        filt = float(filt)
    except ValueError:
        raise ArgumentTypeError("The value '{}' is not a "
                                "number between 0 and 100.".format(filt))

    # Check if filt is within acceptable range
    if not (0 <= filt <= 100):
        raise ArgumentTypeError("The value '{}' must be a number between "
                                "0 and 100.".format(filt))

    # If filt is a float between 0 and 1, convert to percentage
    if 0 <= filt < 1:
        filt = round(filt * 100, 6)

    return filt


def percentage(filt):
    """
    Same as `mfilters`, but returns the value as a proportion between 0
    and 1.
    """

    return round(mfilters(filt) / 100, 8)


def check_infile_list(infiles):

    dirs = []
    lost = []
    good_files = []

    for fpath in infiles:

        if not os.path.exists(fpath):
            lost.append(fpath)

        elif os.path.isdir(fpath):
            dirs.append(fpath)

        else:
            good_files.append(fpath)

    return good_files, dirs, lost


def find_input_files(directory, input_format="auto"):
    """
    Expands a directory into the alignment files it contains, using the
    glob patterns of `input_format` (all formats when "auto").
    :param directory: (string) Path to directory
    :param input_format: (string) One of "auto", "fasta", "nexus", "phylip"
    :return: (list) Paths to the files, in natural order
    """

    if input_format == "auto":
        patterns = format_globs.values()
    else:
        patterns = [format_globs[input_format]]

    files = set()
    for pattern in patterns:
        files.update(x for x in glob(os.path.join(directory, pattern))
                     if os.path.isfile(x))

    return natural_sort(files)


__author__ = "Diogo N. Silva"
