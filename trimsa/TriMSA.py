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

import os
import sys
import time
import logging
import argparse
from glob import glob

from progressbar import ProgressBar, Timer, Bar, Percentage, SimpleProgress

from trimsa.process.base import print_col, RED, GREEN, YELLOW, CleanUp, \
    input_formats, output_formats, partition_formats, datatypes
from trimsa.process import batch
from trimsa.base.sanity import trimsa_arg_check, percentage, \
    check_infile_list, find_input_files


def gen_wgt():

    bar_wdg = [
        "( ", SimpleProgress(), " ) ",
        Bar(),
        Percentage(),
        " [", Timer(), "] ",
    ]

    return bar_wdg


def get_input_files(arg):
    """Collects the input alignment files from the -in and -d options."""

    alignment_list = list(arg.infile or [])

    # Support wildcards as arguments for windows
    if sys.platform in ["win32", "cygwin"]:
        fl = []
        for p in alignment_list:
            fl += glob(p)
        alignment_list = fl

    # Check input files for directories
    alignment_list, dirs, lost = check_infile_list(alignment_list)

    if dirs:
        print_col("Ignoring input files pointing to a directory: {}".format(
            " ".join(dirs)), YELLOW, quiet=arg.quiet)
    if lost:
        print_col("Ignoring input files that do not exist: {}".format(
            " ".join(lost)), YELLOW, quiet=arg.quiet)

    for directory in arg.directory or []:
        if not os.path.isdir(directory):
            print_col("The input directory {} does not exist".format(
                directory), RED)
        alignment_list += find_input_files(directory, arg.input_format)

    if not alignment_list:
        print_col("No valid input files have been provided. Terminating...",
                  RED)

    return alignment_list


def register_output(arg, path):
    """Registers `path` for removal if the execution fails. Paths that
    already exist are only registered when they will be overwritten."""

    if not os.path.exists(path) or arg.force:
        arg.temp_paths.append(path)


@CleanUp
def main_parser(arg):
    """ Function with the main operations of TriMSA """

    print_col("Executing TriMSA {} at {} {}".format(
        arg.command, time.strftime("%d/%m/%Y"), time.strftime("%I:%M:%S")),
        GREEN, quiet=arg.quiet)

    arg.temp_paths = []

    # Partition conversion does not require alignments
    if arg.command == "partition":
        print_col("Converting partition file", GREEN, quiet=arg.quiet)
        register_output(arg, arg.outfile)
        partitions = batch.convert_partition(
            arg.infile[0], arg.outfile, output_format=arg.partition_format,
            input_format=arg.input_partition_format, datatype=arg.datatype,
            unchecked=arg.unchecked, force=arg.force)
        print_col("Wrote {} partitions to {}".format(len(partitions),
                                                      arg.outfile),
                  GREEN, quiet=arg.quiet)
        return partitions

    alignment_list = get_input_files(arg)

    if not arg.quiet:
        pbar = ProgressBar(max_value=len(alignment_list), widgets=gen_wgt())
    else:
        pbar = None

    print_col("Processing {} alignment(s)".format(len(alignment_list)),
              GREEN, quiet=arg.quiet)

    common = {"input_format": arg.input_format, "datatype": arg.datatype}

    # ################################ Utilities ##############################
    if arg.command == "id":
        print_col("Writing taxa to new file", GREEN, quiet=arg.quiet)
        register_output(arg, arg.outfile)
        n = batch.write_unique_ids(alignment_list, arg.outfile,
                                   input_format=arg.input_format,
                                   force=arg.force)
        print_col("Wrote {} unique taxa to {}".format(n, arg.outfile),
                  GREEN, quiet=arg.quiet)
        return n

    # ############################# Main operations ###########################
    if arg.command == "concat":
        print_col("Concatenating", GREEN, quiet=arg.quiet)
        register_output(arg, batch.concat_output_path(arg.outfile,
                                                   arg.output_format))
        return batch.concat_alignments(
            alignment_list, arg.outfile, output_format=arg.output_format,
            partition_format=arg.partition_format, sort=arg.sort,
            force=arg.force, pbar=pbar, **common)

    if arg.command == "convert":
        print_col("Converting", GREEN, quiet=arg.quiet)
        register_output(arg, arg.outfile)
        return batch.convert_alignments(
            alignment_list, arg.outfile, output_format=arg.output_format,
            sort=arg.sort, threads=arg.threads, force=arg.force, pbar=pbar,
            **common)

    if arg.command == "split":
        print_col("Reverse concatenating", GREEN, quiet=arg.quiet)
        register_output(arg, arg.outfile)
        return batch.split_alignment(
            alignment_list[0], arg.partition_file, arg.outfile,
            output_format=arg.output_format,
            partition_format=arg.input_partition_format,
            unchecked=arg.unchecked, prefix=arg.prefix, force=arg.force,
            **common)

    if arg.command == "filter":
        print_col("Filtering", GREEN, quiet=arg.quiet)
        register_output(arg, batch.concat_output_path(arg.outfile,
                                                   arg.output_format)
                        if arg.concat else arg.outfile)
        taxa = arg.contain_taxa
        if arg.taxa_file:
            taxa = (taxa or []) + batch.read_id_list(arg.taxa_file)
        selected = batch.filter_alignments(
            alignment_list, arg.outfile, min_taxa=arg.min_taxa,
            percent=arg.percent, min_len=arg.min_len, max_len=arg.max_len,
            min_pinf=arg.min_pinf, max_pinf=arg.max_pinf,
            percent_inf=arg.percent_inf, missing=arg.missing, taxa=taxa,
            concat=arg.concat, output_format=arg.output_format,
            partition_format=arg.partition_format, summary=arg.summary,
            threads=arg.threads, force=arg.force, pbar=pbar, **common)
        print_col("{} of {} alignments passed the filter".format(
            len(selected), len(alignment_list)), GREEN, quiet=arg.quiet)
        return selected

    if arg.command == "rename":
        print_col("Renaming taxa", GREEN, quiet=arg.quiet)
        mapping = batch.read_rename_mapping(arg.mapping) \
            if arg.mapping else None
        replace_from, replace_to = arg.replace if arg.replace \
            else (None, "")
        register_output(arg, arg.outfile)
        return batch.rename_alignments(
            alignment_list, arg.outfile, mapping=mapping,
            remove=arg.remove_string, replace_from=replace_from,
            replace_to=replace_to, regex=arg.use_regex,
            output_format=arg.output_format, threads=arg.threads,
            force=arg.force, pbar=pbar, **common)

    if arg.command == "unalign":
        print_col("Removing gaps from the sequences", GREEN, quiet=arg.quiet)
        register_output(arg, arg.outfile)
        return batch.unalign_alignments(
            alignment_list, arg.outfile, output_format=arg.output_format,
            threads=arg.threads, force=arg.force, pbar=pbar, **common)

    if arg.command == "filter-seq":
        print_col("Filtering sequences", GREEN, quiet=arg.quiet)
        register_output(arg, arg.outfile)
        outputs = batch.filter_sequences(
            alignment_list, arg.outfile, max_gap=arg.max_gap,
            min_len=arg.min_seq_len, max_len=arg.max_seq_len,
            output_format=arg.output_format, threads=arg.threads,
            force=arg.force, pbar=pbar, **common)
        print_col("Wrote {} of {} alignments with sequences left".format(
            len(outputs), len(alignment_list)), GREEN, quiet=arg.quiet)
        return outputs

    if arg.command in ("remove", "extract"):
        print_col("{} taxa".format("Removing" if arg.command == "remove"
                                   else "Extracting"),
                  GREEN, quiet=arg.quiet)
        taxa = list(arg.taxa or [])
        if arg.taxa_file:
            taxa += batch.read_id_list(arg.taxa_file)
        task = batch.remove_taxa_alignments if arg.command == "remove" \
            else batch.extract_taxa_alignments
        register_output(arg, arg.outfile)
        return task(alignment_list, arg.outfile, taxa_list=taxa,
                    regex=arg.regex, output_format=arg.output_format,
                    threads=arg.threads, force=arg.force, pbar=pbar,
                    **common)


def _add_input_args(parser):

    input_g = parser.add_argument_group("Input options")
    input_g.add_argument("-in", "--input", dest="infile", nargs="+",
                         help="Provide the input file name. If multiple "
                         "files are provided, please separated the names "
                         "with spaces")
    input_g.add_argument("-d", "--dir", dest="directory", nargs="+",
                         help="Directory with input files. Files are "
                         "selected by the extensions of the input format")
    input_g.add_argument("-f", "--input-format", dest="input_format",
                         default="auto", choices=input_formats,
                         help="Format of the input files. By default, it is "
                         "inferred from the file extension (default is "
                         "'%(default)s')")
    input_g.add_argument("--datatype", dest="datatype", default="dna",
                         choices=datatypes, help="Data type of the input "
                         "sequences. Sequences are not validated with "
                         "'ignore' (default is '%(default)s')")


def _add_misc_args(parser, threads=True):

    misc = parser.add_argument_group("Miscellaneous")
    misc.add_argument("--force", dest="force", action="store_const",
                      const=True, default=False, help="Overwrite existing "
                      "output files and directories")
    if threads:
        misc.add_argument("-t", "--threads", dest="threads", type=int,
                          help="Number of worker threads (default is the "
                          "number of processors)")
    else:
        parser.set_defaults(threads=None)
    misc.add_argument("-quiet", dest="quiet", action="store_const",
                      const=True, default=False, help="Removes all "
                      "terminal output")


def _add_output_args(parser, output_help, partitions=False, sort=False):

    output_g = parser.add_argument_group("Output options")
    output_g.add_argument("-o", "--output", dest="outfile", help=output_help)
    output_g.add_argument("-of", "--output-format", dest="output_format",
                          default="nexus", choices=output_formats,
                          help="Format of the output file(s). The '-int' "
                          "formats are interleaved (default is "
                          "'%(default)s')")
    if partitions:
        output_g.add_argument("-p", "--partition-format",
                              dest="partition_format", default="charset",
                              choices=partition_formats,
                              help="Format of the partitions of the "
                              "concatenated alignment. Charset partitions "
                              "are written inside nexus output files "
                              "(default is '%(default)s')")
    if sort:
        output_g.add_argument("--sort", dest="sort", action="store_const",
                              const=True, default=False, help="Sort taxa "
                              "alphabetically in the output")


def _add_partition_input_args(parser):

    part_g = parser.add_argument_group("Partition options")
    part_g.add_argument("--input-partition-format",
                        dest="input_partition_format",
                        choices=["nexus", "raxml"], help="Format of the "
                        "partition file. By default, it is inferred from "
                        "the file content")
    part_g.add_argument("--unchecked", dest="unchecked",
                        action="store_const", const=True, default=False,
                        help="Do not require the partitions to be "
                        "contiguous and to start at the first position")

    return part_g


def get_args(arg_list=None, unittest=False):

    # The inclusion of the argument definition in main, makes it possible to
    # import this file as a module and not triggering argparse. The
    # alternative of using a if __name__ == "__main__" statement does not
    # work well with the entry_points parameter of setup.py, since they call
    # the main function but do nothing inside said statement.
    parser = argparse.ArgumentParser(description="Command line interface for "
                                                 "multiple sequence "
                                                 "alignment processing")

    subparsers = parser.add_subparsers(dest="command", title="Commands")

    # Concatenation
    concat = subparsers.add_parser("concat", help="Concatenate alignments "
                                   "into a single alignment with partitions")
    _add_input_args(concat)
    _add_output_args(concat, "Name of the output file", partitions=True,
                     sort=True)
    _add_misc_args(concat, threads=False)

    # Conversion
    convert = subparsers.add_parser("convert", help="Convert alignments to "
                                    "another format")
    _add_input_args(convert)
    _add_output_args(convert, "Output directory", sort=True)
    _add_misc_args(convert)

    # Filtering
    filter_p = subparsers.add_parser("filter", help="Select the alignments "
                                     "that pass a filtering criterion")
    _add_input_args(filter_p)
    _add_output_args(filter_p, "Output directory, or the output file when "
                     "using --concat", partitions=True)
    filter_g = filter_p.add_argument_group("Filter options")
    filter_g.add_argument("--min-taxa", dest="min_taxa", type=int,
                          help="Minimum number of taxa that needs to be "
                          "present in an alignment")
    filter_g.add_argument("--percent", dest="percent", type=percentage,
                          help="Minimum percentage of the total taxa that "
                          "needs to be present in an alignment")
    filter_g.add_argument("--min-length", dest="min_len", type=int,
                          help="Minimum alignment length")
    filter_g.add_argument("--max-length", dest="max_len", type=int,
                          help="Maximum alignment length")
    filter_g.add_argument("--min-informative", dest="min_pinf", type=int,
                          help="Minimum number of parsimony informative "
                          "sites")
    filter_g.add_argument("--max-informative", dest="max_pinf", type=int,
                          help="Maximum number of parsimony informative "
                          "sites")
    filter_g.add_argument("--percent-informative", dest="percent_inf",
                          type=percentage, help="Minimum number of "
                          "parsimony informative sites, as a percentage "
                          "of the highest number found in the alignments")
    filter_g.add_argument("--missing", dest="missing", type=percentage,
                          help="Maximum percentage of gaps and missing "
                          "data in an alignment")
    filter_g.add_argument("--contain-taxa", dest="contain_taxa", nargs="+",
                          help="Only select alignments that contain all "
                          "the specified taxa")
    filter_g.add_argument("--taxa-file", dest="taxa_file", help="File with "
                          "one taxon name per line. Used together with "
                          "--contain-taxa")
    filter_g.add_argument("--concat", dest="concat", action="store_const",
                          const=True, default=False, help="Concatenate the "
                          "selected alignments instead of copying them")
    filter_g.add_argument("--summary", dest="summary", help="Write the "
                          "number of parsimony informative sites of each "
                          "alignment to this CSV file")
    _add_misc_args(filter_p)

    # Reverse concatenation
    split = subparsers.add_parser("split", help="Split a concatenated "
                                  "alignment into its partitions")
    _add_input_args(split)
    _add_output_args(split, "Output directory")
    part_g = _add_partition_input_args(split)
    part_g.add_argument("--partition-file", dest="partition_file",
                        help="Partition file with the ranges of each "
                        "alignment, in nexus or RAxML format")
    part_g.add_argument("--prefix", dest="prefix", help="Prefix of the "
                        "names of the new alignments")
    _add_misc_args(split, threads=False)

    # Partition conversion
    partition = subparsers.add_parser("partition", help="Convert a "
                                      "partition file to another format")
    partition.add_argument("-in", "--input", dest="infile", nargs="+",
                           help="Partition file")
    partition.add_argument("-o", "--output", dest="outfile",
                           help="Name of the output file")
    partition.add_argument("-p", "--partition-format",
                           dest="partition_format", default="raxml",
                           choices=partition_formats,
                           help="Format of the output partition file "
                           "(default is '%(default)s')")
    partition.add_argument("--datatype", dest="datatype", default="dna",
                           choices=datatypes, help="Data type of the "
                           "alignment. The 'DNA' prefix of RAxML partitions"
                           " is only written for 'dna'")
    _add_partition_input_args(partition)
    _add_misc_args(partition, threads=False)

    # Taxa renaming
    rename = subparsers.add_parser("rename", help="Rename the taxa of the "
                                   "alignments")
    _add_input_args(rename)
    _add_output_args(rename, "Output directory")
    rename_g = rename.add_argument_group("Rename options")
    rename_g.add_argument("--mapping", dest="mapping", help="Two column "
                          ".csv or .tsv file with the current and new taxa "
                          "names. The first line is a header")
    rename_g.add_argument("--remove-string", dest="remove_string",
                          help="Remove this string from all taxa names")
    rename_g.add_argument("--replace", dest="replace", nargs=2,
                          metavar=("FROM", "TO"), help="Replace a string in "
                          "all taxa names")
    rename_g.add_argument("--regex", dest="use_regex", action="store_const",
                          const=True, default=False, help="Interpret the "
                          "--remove-string and --replace strings as regular "
                          "expressions")
    _add_misc_args(rename)

    # Taxa removal and extraction
    for name, hlp in [("remove", "Remove taxa from the alignments"),
                      ("extract", "Keep only the specified taxa in the "
                                  "alignments")]:
        sub = subparsers.add_parser(name, help=hlp)
        _add_input_args(sub)
        _add_output_args(sub, "Output directory")
        taxa_g = sub.add_argument_group("Taxa options")
        taxa_g.add_argument("--taxa", dest="taxa", nargs="+", help="Taxa "
                            "names, separated by whitespace")
        taxa_g.add_argument("--taxa-file", dest="taxa_file", help="File "
                            "with one taxon name per line")
        taxa_g.add_argument("--regex", dest="regex", help="Regular "
                            "expression searched in the taxa names")
        _add_misc_args(sub)

    # Unaligned sequences
    unalign = subparsers.add_parser("unalign", help="Remove gaps and "
                                    "missing data from the sequences")
    _add_input_args(unalign)
    _add_output_args(unalign, "Output directory")
    unalign.set_defaults(output_format="fasta")
    _add_misc_args(unalign)

    # Sequence filtering
    seq_filter = subparsers.add_parser("filter-seq", help="Remove "
                                       "sequences from the alignments")
    _add_input_args(seq_filter)
    _add_output_args(seq_filter, "Output directory")
    seq_filter_g = seq_filter.add_argument_group("Sequence filter options")
    seq_filter_g.add_argument("--max-gap", dest="max_gap", type=percentage,
                              help="Maximum percentage of gaps and missing "
                              "data in a sequence")
    seq_filter_g.add_argument("--min-seq-length", dest="min_seq_len",
                              type=int, help="Minimum sequence length, "
                              "without gaps and missing data")
    seq_filter_g.add_argument("--max-seq-length", dest="max_seq_len",
                              type=int, help="Maximum sequence length, "
                              "without gaps and missing data")
    _add_misc_args(seq_filter)

    # Unique taxa
    ids = subparsers.add_parser("id", help="Write the names of all taxa "
                                "found in the alignments")
    _add_input_args(ids)
    ids.add_argument("-o", "--output", dest="outfile",
                     default="Taxa_list.txt", help="Name of the output file "
                     "(default is '%(default)s')")
    _add_misc_args(ids, threads=False)

    args = parser.parse_args(arg_list)

    # Print help when no arguments are provided
    if (len(sys.argv) == 1 and not unittest) or args.command is None:
        parser.print_help()
        sys.exit(1)

    if not args.quiet:
        logging.basicConfig(level=logging.WARNING,
                            format="%(levelname)s: %(message)s")

    return args


def main(arg_list=None):
    arguments = get_args(arg_list)
    trimsa_arg_check(arguments)
    return main_parser(arguments)


if __name__ == "__main__":

    main()


__author__ = "Diogo N. Silva"
