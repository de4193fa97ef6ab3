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
Batch operations over sets of alignment files.

Each function of this module is a self contained task that reads its
input files, performs one operation and writes the results. Operations
that handle each file independently (conversion, renaming, taxa removal
and extraction) run on the pool of worker threads of
:class:`~trimsa.process.sequence.AlignmentList`, so that each file is
read, transformed and written by a single worker. Concatenation and
splitting run in a single thread, since the order of the alignments
determines the partition ranges.

All tasks guard their output paths with
:func:`~trimsa.process.base.check_output_path`: an existing output aborts
the task unless `force` is True.
"""

from trimsa.process.base import check_output_path, output_extensions, \
    split_output_format
from trimsa.process.sequence import Alignment, AlignmentList
from trimsa.process.data import Partitions
from trimsa.process.error_handling import InputError, TriMSAError

import os
import shutil
import logging
from os.path import join, splitext, basename, dirname

import pandas as pd

logger = logging.getLogger(__name__)


def output_file_path(output_dir, name, output_format):
    """Path of an output alignment named `name` in `output_dir`, with the
    extension of `output_format`."""

    fmt, _ = split_output_format(output_format)
    return join(output_dir, name + output_extensions[fmt])


def prepare_output_dir(output_dir, force=False):
    """Creates `output_dir` before any worker writes into it."""

    check_output_path(output_dir, force)
    os.makedirs(output_dir, exist_ok=True)


def concat_output_path(output, output_format):
    """Adds the extension of `output_format` to `output` when it has none."""

    if not splitext(output)[1]:
        fmt, _ = split_output_format(output_format)
        output += output_extensions[fmt]

    return output


def _requires_alignment(output_format):
    # Only fasta can store sequences of unequal length
    return not output_format.startswith("fasta")


def concat_alignments(files, output, input_format="auto", datatype="dna",
                      output_format="nexus", partition_format="charset",
                      sort=False, force=False, pbar=None):
    """Concatenates alignment files into a single alignment file.

    Parameters
    ----------
    files : list
        Paths to the alignment files.
    output : str
        Path to the output file. The extension of `output_format` is
        added when `output` has none.
    input_format : str
        Format of the input files.
    datatype : str
        Data type of the input files.
    output_format : str
        Format of the concatenated alignment.
    partition_format : str
        Format of the partitions of the concatenated alignment.
    sort : bool
        If True, the taxa are sorted alphabetically.
    force : bool
        Overwrite existing output.
    pbar : ProgressBar, optional
        Progress bar.

    Returns
    -------
    tuple
        (path to alignment file, path to partition file or None)
    """

    output = concat_output_path(output, output_format)

    check_output_path(output, force)
    if dirname(output):
        os.makedirs(dirname(output), exist_ok=True)

    aln_list = AlignmentList(files, input_format=input_format,
                             datatype=datatype)
    concatenated = aln_list.concatenate(pbar=pbar)

    if sort:
        partitions = concatenated.partitions
        concatenated = concatenated.sort_taxa()
        concatenated.partitions = partitions

    part_file = concatenated.write_to_file(output_format, output,
                                           partition_format=partition_format)

    return output, part_file


def convert_alignments(files, output_dir, input_format="auto",
                       datatype="dna", output_format="nexus", sort=False,
                       threads=None, force=False, pbar=None):
    """Converts each alignment file to `output_format`.

    The converted files are named after the input files and written to
    `output_dir`.

    Returns
    -------
    list
        Paths to the converted files.
    """

    prepare_output_dir(output_dir, force)

    def convert(aln):
        if _requires_alignment(output_format):
            aln.check_is_alignment()
        if sort:
            aln = aln.sort_taxa()
        out = output_file_path(output_dir, aln.sname, output_format)
        aln.write_to_file(output_format, out)
        return out

    aln_list = AlignmentList(files, input_format=input_format,
                             datatype=datatype, threads=threads)

    return list(aln_list._map_files(convert, pbar).values())


def _transform_alignments(files, output_dir, transform, input_format,
                          datatype, output_format, threads, force, pbar):
    """Applies `transform` to each alignment and writes the result to
    `output_dir`, with the original file name and `output_format`."""

    prepare_output_dir(output_dir, force)

    def task(aln):
        new_aln = transform(aln)
        out = output_file_path(output_dir, aln.sname, output_format)
        new_aln.write_to_file(output_format, out)
        return out

    aln_list = AlignmentList(files, input_format=input_format,
                             datatype=datatype, threads=threads)

    return list(aln_list._map_files(task, pbar).values())


def read_rename_mapping(mapping_file):
    """Reads a two column CSV or TSV file with the current (first column)
    and new (second column) taxon names. The first line is a header.

    Returns
    -------
    dict
        Current names (keys) and new names (values).

    Raises
    ------
    InputError
        When the file is not .csv or .tsv or does not have two columns.
    """

    ext = splitext(mapping_file)[1].lower()
    if ext not in (".csv", ".tsv"):
        raise InputError("The rename file {} must be a .csv or a .tsv "
                         "file".format(mapping_file))

    sep = "," if ext == ".csv" else r"\s+"
    df = pd.read_csv(mapping_file, sep=sep, dtype=str, engine="python")

    if len(df.columns) != 2:
        raise InputError("Failed parsing {}. Expected 2 columns, found "
                         "{}".format(mapping_file, len(df.columns)))

    df = df.apply(lambda col: col.str.strip())

    return dict(zip(df.iloc[:, 0], df.iloc[:, 1]))


def read_id_list(id_file):
    """Reads a plain text file with one taxon name per line. Empty lines
    are ignored."""

    with open(id_file) as fh:
        return [x.strip() for x in fh if x.strip()]


def rename_alignments(files, output_dir, mapping=None, remove=None,
                      replace_from=None, replace_to="", regex=False,
                      input_format="auto", datatype="dna",
                      output_format="nexus", threads=None, force=False,
                      pbar=None):
    """Renames the taxa of each alignment file.

    Only one of the renaming modes is applied, in this order of
    precedence: `mapping` (dictionary of current to new names), `remove`
    (string removed from every name) and `replace_from` (string or regular
    expression replaced by `replace_to`).
    """

    def transform(aln):
        if mapping is not None:
            return aln.rename_taxa(mapping)
        if remove is not None:
            return aln.replace_in_taxa(remove, "", regex=regex)
        if replace_from is not None:
            return aln.replace_in_taxa(replace_from, replace_to or "",
                                       regex=regex)
        raise InputError("No renaming option was provided")

    return _transform_alignments(files, output_dir, transform, input_format,
                                 datatype, output_format, threads, force,
                                 pbar)


def remove_taxa_alignments(files, output_dir, taxa_list=None, regex=None,
                           input_format="auto", datatype="dna",
                           output_format="nexus", threads=None,
                           force=False, pbar=None):
    """Removes the taxa in `taxa_list` (or matching `regex`) from each
    alignment file."""

    return _transform_alignments(
        files, output_dir,
        lambda aln: aln.remove_taxa(taxa_list, mode="remove", regex=regex),
        input_format, datatype, output_format, threads, force, pbar)


def extract_taxa_alignments(files, output_dir, taxa_list=None, regex=None,
                            input_format="auto", datatype="dna",
                            output_format="nexus", threads=None,
                            force=False, pbar=None):
    """Keeps only the taxa in `taxa_list` (or matching `regex`) in each
    alignment file."""

    return _transform_alignments(
        files, output_dir,
        lambda aln: aln.remove_taxa(taxa_list, mode="inverse", regex=regex),
        input_format, datatype, output_format, threads, force, pbar)


def unalign_alignments(files, output_dir, input_format="auto",
                       datatype="dna", output_format="fasta", threads=None,
                       force=False, pbar=None):
    """Removes gaps and missing data from the sequences of each alignment
    file. The unaligned sequences can only be written in fasta format."""

    if _requires_alignment(output_format):
        raise InputError("Unaligned sequences can only be written in fasta "
                         "format, not {}".format(output_format))

    return _transform_alignments(files, output_dir,
                                 lambda aln: aln.unalign(), input_format,
                                 datatype, output_format, threads, force,
                                 pbar)


def filter_sequences(files, output_dir, max_gap=None, min_len=None,
                     max_len=None, input_format="auto", datatype="dna",
                     output_format="nexus", threads=None, force=False,
                     pbar=None):
    """Removes sequences from each alignment file.

    Only one criterion is applied, in this order of precedence: `max_gap`
    (maximum proportion of gaps in a sequence) and the [`min_len`,
    `max_len`] range of the sequence length without gaps. Files left
    without sequences are not written.

    Returns
    -------
    list
        Paths to the files that were written.

    Raises
    ------
    TriMSAError
        When no criterion is provided.
    """

    if max_gap is not None:
        def transform(aln):
            return aln.remove_gappy_sequences(max_gap)
    elif min_len is not None or max_len is not None:
        def transform(aln):
            return aln.filter_sequence_length(min_len, max_len)
    else:
        raise TriMSAError("No sequence filtering criterion was provided")

    prepare_output_dir(output_dir, force)

    def task(aln):
        if _requires_alignment(output_format):
            aln.check_is_alignment()
        new_aln = transform(aln)
        if not len(new_aln):
            logger.info("No sequences left in %s", aln.path)
            return None
        out = output_file_path(output_dir, aln.sname, output_format)
        new_aln.write_to_file(output_format, out)
        return out

    aln_list = AlignmentList(files, input_format=input_format,
                             datatype=datatype, threads=threads)

    outputs = [x for x in aln_list._map_files(task, pbar).values() if x]

    if not outputs:
        logger.warning("No sequences passed the filter")

    return outputs


def write_unique_ids(files, output_file, input_format="auto", force=False):
    """Writes the union of the taxon names of all files to `output_file`,
    one name per line.

    Returns
    -------
    int
        Number of unique taxon names.
    """

    check_output_path(output_file, force)

    aln_list = AlignmentList(files, input_format=input_format)
    aln_list.write_taxa_to_file(output_file)

    return len(aln_list.taxa_names)


def write_informative_summary(counts, output_file):
    """Writes the number of parsimony informative sites of each file to a
    CSV file, sorted by path.

    Parameters
    ----------
    counts : dict
        Paths (keys) and parsimony informative sites (values).
    output_file : str
        Path to the CSV file.
    """

    df = pd.DataFrame({"path": list(counts.keys()),
                       "informative_sites": list(counts.values())})
    df.sort_values("path").to_csv(output_file, index=False)


def filter_alignments(files, output, input_format="auto", datatype="dna",
                      min_taxa=None, percent=None, min_len=None,
                      max_len=None, min_pinf=None, max_pinf=None,
                      percent_inf=None, missing=None, taxa=None,
                      concat=False, output_format="nexus",
                      partition_format="charset", summary=None,
                      threads=None, force=False, pbar=None):
    """Filters alignment files by one criterion.

    The criterion is selected by the first of the filtering arguments that
    is provided, in the order of the signature: minimum number of taxa
    (`min_taxa`) or percentage of the total taxa (`percent`), alignment
    length range (`min_len`, `max_len`), parsimony informative sites range
    (`min_pinf`, `max_pinf`), parsimony informative sites as a percentage
    of the maximum (`percent_inf`), maximum proportion of missing data
    (`missing`) and presence of all taxa in `taxa`.

    Parameters
    ----------
    files : list
        Paths to the alignment files.
    output : str
        Output directory where the selected files are copied or, when
        `concat` is True, path to the concatenated alignment.
    concat : bool
        If True, the selected files are concatenated instead of copied.
    summary : str, optional
        Path to a CSV file where the number of parsimony informative sites
        of each file is written, for the parsimony informative filters.

    Returns
    -------
    list
        Paths to the selected input files.

    Raises
    ------
    NoAlignmentsLeft
        When no file passes the filter.
    """

    aln_list = AlignmentList(files, input_format=input_format,
                             datatype=datatype, threads=threads)

    if min_taxa is not None or percent is not None:
        if min_taxa is None:
            min_taxa = aln_list.get_min_taxa(percent)
        logger.info("Minimum number of taxa: %s", min_taxa)
        selected = aln_list.filter_min_taxa(min_taxa, pbar=pbar)

    elif min_len is not None or max_len is not None:
        selected = aln_list.filter_alignment_length(min_len, max_len,
                                                    pbar=pbar)

    elif min_pinf is not None or max_pinf is not None or \
            percent_inf is not None:
        counts = aln_list.get_informative_sites(pbar=pbar)
        if summary:
            write_informative_summary(counts, summary)
        if percent_inf is not None:
            selected = aln_list.filter_informative_percent(percent_inf,
                                                           counts=counts)
        else:
            selected = aln_list.filter_informative_sites(min_pinf, max_pinf,
                                                         counts=counts)

    elif missing is not None:
        selected = aln_list.filter_missing_data(missing, pbar=pbar)

    elif taxa:
        selected = aln_list.filter_by_taxa(taxa, pbar=pbar)

    else:
        raise TriMSAError("No filtering criterion was provided")

    logger.info("%s of %s alignments passed the filter", len(selected),
                len(files))

    if concat:
        concat_alignments(selected, output, input_format=input_format,
                          datatype=datatype, output_format=output_format,
                          partition_format=partition_format, force=force)
    else:
        prepare_output_dir(output, force)
        for path in selected:
            shutil.copy(path, join(output, basename(path)))

    return selected


def split_alignment(input_file, partition_file, output_dir,
                    input_format="auto", datatype="dna",
                    output_format="nexus", partition_format=None,
                    unchecked=False, prefix=None, force=False):
    """Splits a concatenated alignment into one alignment file per
    partition.

    Parameters
    ----------
    input_file : str
        Path to the concatenated alignment.
    partition_file : str
        Path to the partition file.
    output_dir : str
        Output directory.
    partition_format : str, optional
        Format of `partition_file`. Detected from its content by default.
    unchecked : bool
        Skip the contiguity check of the partitions.
    prefix : str, optional
        Prefix of the output file names.

    Returns
    -------
    list
        Paths to the new alignment files.
    """

    partitions = Partitions()
    partitions.read_from_file(partition_file, partition_format,
                              unchecked=unchecked)

    aln = Alignment(input_file, input_format=input_format, datatype=datatype)
    aln.check_is_alignment()

    prepare_output_dir(output_dir, force)

    outputs = []
    for new_aln in aln.reverse_concatenate(partitions, prefix=prefix):
        out = output_file_path(output_dir, new_aln.name, output_format)
        new_aln.write_to_file(output_format, out)
        outputs.append(out)

    return outputs


def convert_partition(partition_file, output_file, output_format="raxml",
                      input_format=None, datatype="dna", unchecked=False,
                      force=False):
    """Converts a partition file to another partition format.

    Returns
    -------
    Partitions
        The parsed partitions.
    """

    if output_format.startswith("charset"):
        raise InputError("Charset partitions can only be written inside a "
                         "nexus alignment. Use the nexus partition format "
                         "instead")

    check_output_path(output_file, force)

    partitions = Partitions()
    partitions.read_from_file(partition_file, input_format,
                              unchecked=unchecked)
    partitions.write_to_file(output_format, output_file, datatype)

    return partitions


__author__ = "Diogo N. Silva"
