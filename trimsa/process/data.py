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

import re
import logging
from os.path import splitext, basename, dirname, join
from collections import namedtuple

from trimsa.process.error_handling import TriMSAError

logger = logging.getLogger(__name__)

# Positions are 1-based and inclusive. `codon` is True when the partition
# was defined with the codon stride notation
Partition = namedtuple("Partition", ["gene", "start", "end", "codon"])

# Characters removed from partition names
illegal_chars = "()/\\,\"';:?!"

# Suffixes appended to the partition names of codon partitions, such as
# gene_Subset1, gene_subset_2 or gene_3rdpos
codon_suffix = re.compile(r"_(subset_?\d+|\d+(st|nd|rd|th)pos)$",
                          re.IGNORECASE)

# START-END range, optionally followed by the codon stride (\3)
range_pattern = re.compile(r"^(\d+)\s*-\s*(\d+)\s*([\\/]3)?$")

charset_pattern = re.compile(r"^\s*charset\s+(.+?)\s*=\s*(.+?)\s*;?\s*$",
                             re.IGNORECASE)


class PartitionException(TriMSAError):
    pass


class InvalidPartitionFile(TriMSAError):
    pass


class Partitions(object):
    """Partitions interface for `Alignment` and `AlignmentList`.

    The Partitions class stores the gene boundaries of an alignment as
    an ordered list of :class:`Partition` tuples. After instantiating,
    partitions may be set in two ways:

      - Partition files: Being Nexus charset blocks and RAxML partition files
        currently supported (`read_from_file`).
      - Locus lengths: Appending partitions one after the other, which is
        how concatenation builds them (`add_partition`).

    Attributes
    ----------
    partitions : list
        Ordered list of :class:`Partition` objects.
    counter : int
        Indicator of where the last partition ended.
    partition_format : str
        Format of the original partition file, if any.
    """

    def __init__(self):

        self.partitions = []
        self.counter = 0
        self.partition_format = None

    def __iter__(self):
        return iter(self.partitions)

    def __len__(self):
        return len(self.partitions)

    def __getitem__(self, idx):
        return self.partitions[idx]

    def reset(self):

        self.partitions = []
        self.counter = 0

    @staticmethod
    def _get_file_format(partition_file):
        """Guesses the format of a partition file from its first
        non-empty line.

        Parameters
        ----------
        partition_file : str
            Path to partition file.

        Returns
        -------
        str
            "nexus" or "raxml".
        """

        with open(partition_file) as fh:
            for line in fh:
                if not line.strip():
                    continue
                first = line.strip().lower()
                if first.startswith(("#nexus", "begin", "charset")):
                    return "nexus"
                return "raxml"

        raise InvalidPartitionFile("The partition file {} is "
                                   "empty".format(partition_file))

    @staticmethod
    def sanitize_name(name, codon=False):
        """Removes illegal characters from a partition name.

        The characters in `illegal_chars` are removed and dots are replaced
        by underscores. For codon partitions, the subset suffix is removed
        first, so that the three codon subsets share the name of the gene.

        Raises
        ------
        PartitionException
            When the cleaned name still contains whitespace.
        """

        name = name.strip()

        if codon:
            name = codon_suffix.sub("", name.strip("'\""))

        name = "".join(x for x in name if x not in illegal_chars)
        name = name.replace(".", "_")

        if " " in name or not name:
            raise PartitionException("Invalid partition name '{}'. "
                                     "Partition names cannot be empty or "
                                     "contain spaces".format(name))

        return name

    @staticmethod
    def _parse_range(range_string):
        """Parses a 'START-END[\\3]' string into (start, end, codon)."""

        match = range_pattern.match(range_string.strip())
        if not match:
            raise ValueError(range_string)

        start, end = int(match.group(1)), int(match.group(2))
        codon = match.group(3) is not None

        # Codon subsets of short genes may start up to two positions after
        # the end of the gene
        if start < 1 or end < start - (2 if codon else 0):
            raise ValueError(range_string)

        return start, end, codon

    def read_from_nexus_string(self, nx_string):
        """Parses a single nexus charset string with partition definition.

        Parameters
        ----------
        nx_string : str
            String with partition definition, such as
            "charset gene1 = 1-100;".

        Returns
        -------
        list or None
            [name, start, end, codon], or None when the line is not a
            charset statement.
        """

        match = charset_pattern.match(nx_string)
        if not match:
            return None

        start, end, codon = self._parse_range(match.group(2))
        name = self.sanitize_name(match.group(1), codon)

        return [name, start, end, codon]

    def read_from_raxml_string(self, rx_string):
        """Parses a single RAxML partition string, such as
        "DNA, gene1 = 1-100". The data type prefix is optional."""

        # The data type prefix ends at the first comma
        fields = rx_string.split(",", 1)
        definition = fields[-1]

        name, part_range = definition.split("=")
        start, end, codon = self._parse_range(part_range)
        name = self.sanitize_name(name, codon)

        return [name, start, end, codon]

    def read_from_file(self, partitions_file, partition_format=None,
                       unchecked=False):
        """Parses partitions from file

        This method parses a file containing partitions. It supports
        partitions files similar to RAxML's and NEXUS charset blocks. For
        NEXUS, charset statements are collected from anywhere in the file.

        Parameters
        ----------
        partitions_file : str
            Path to partitions file.
        partition_format : str, optional
            One of the partition formats ("charset", "nexus", "raxml" and
            their "-codon" variants). If not provided, the format is
            detected from the file content.
        unchecked : bool
            If True, the partitions are not required to start at the first
            position and to be contiguous.

        Raises
        ------
        InvalidPartitionFile
            When one partition definition cannot be parsed or the
            partitions are not contiguous.
        """

        if partition_format:
            fmt = partition_format.split("-")[0]
            self.partition_format = "raxml" if fmt == "raxml" else "nexus"
        else:
            self.partition_format = self._get_file_format(partitions_file)

        parser = {"nexus": self.read_from_nexus_string,
                  "raxml": self.read_from_raxml_string}[
            self.partition_format]

        temp_ranges = []

        with open(partitions_file) as part_file:
            for p, line in enumerate(part_file):

                # Ignore empty lines
                if line.strip() == "":
                    continue

                try:
                    res = parser(line)
                except (IndexError, ValueError):
                    raise InvalidPartitionFile(
                        "Badly formatted partitions file {} in line {} "
                        "with:\n\n{}".format(partitions_file, p + 1,
                                             line.strip()))

                if res:
                    temp_ranges.append(res)

        self.reset()

        for name, start, end, codon in temp_ranges:
            self.add_partition(name, locus_range=(start, end), codon=codon)

        logger.debug("Parsed %s partitions from %s", len(self.partitions),
                     partitions_file)

        if not unchecked:
            self.check_partitions(partitions_file)

    def add_partition(self, name, length=None, locus_range=None,
                      codon=False):
        """Adds a new partition.

        The partition is defined either by its `length`, in which case it
        starts right after the last partition, or by its `locus_range`.

        Parameters
        ----------
        name : str
            Name of the partition.
        length : int, optional
            Length of the partition.
        locus_range : tuple, optional
            (start, end) positions, 1-based and inclusive.
        codon : bool
            Whether the partition uses the codon stride notation.
        """

        if length is not None:
            start, end = self.counter + 1, self.counter + length
        elif locus_range is not None:
            start, end = locus_range
        else:
            raise PartitionException("Either the length or the range of "
                                     "partition {} must be "
                                     "provided".format(name))

        # The second and third codon subsets of a gene do not advance the
        # end of the partition set
        if codon and self.partitions:
            last = self.partitions[-1]
            if last.codon and last.gene == name and end <= self.counter:
                return

        if locus_range is not None and (start < 1 or end < start):
            raise InvalidPartitionFile(
                "Invalid range {}-{} for partition {}. Ranges must start at "
                "position 1 or later and cannot end before they start".format(
                    start, end, name))

        self.partitions.append(Partition(name, start, end, codon))
        self.counter = max(self.counter, end)

    def get_partition_names(self):
        return [x.gene for x in self.partitions]

    def is_contiguous(self):
        """Returns whether the partitions start at the first position and
        follow each other without gaps or overlaps."""

        if not self.partitions or self.partitions[0].start != 1:
            return False

        return all(cur.start == prev.end + 1 for prev, cur in
                   zip(self.partitions, self.partitions[1:]))

    def check_partitions(self, partitions_file=None):
        """Raises InvalidPartitionFile when the partitions are empty or
        not contiguous."""

        source = partitions_file or "the partition set"

        if not self.partitions:
            raise InvalidPartitionFile("No partitions were found in "
                                       "{}".format(source))

        first = self.partitions[0]
        if first.start != 1:
            raise InvalidPartitionFile(
                "The first partition of {} must start at position 1. "
                "Partition {} starts at {}".format(source, first.gene,
                                                   first.start))

        for prev, cur in zip(self.partitions, self.partitions[1:]):
            if cur.start != prev.end + 1:
                raise InvalidPartitionFile(
                    "Partitions of {} are not contiguous. Partition {} "
                    "ends at {} but partition {} starts at {}".format(
                        source, prev.gene, prev.end, cur.gene, cur.start))

    @staticmethod
    def codon_subsets(partition):
        """Returns the three codon position subsets of `partition` as
        (name, start, end) tuples, each applied with a stride of 3."""

        return [("{}_Subset{}".format(partition.gene, i + 1),
                 partition.start + i, partition.end) for i in range(3)]

    @staticmethod
    def partition_path(alignment_file, partition_format):
        """Path of the companion partition file of `alignment_file`.

        The file sits in the same directory, named after the alignment
        stem with the "_partition" suffix and the .nex (nexus) or .txt
        (raxml) extension.
        """

        ext = ".txt" if partition_format.startswith("raxml") else ".nex"
        stem = splitext(basename(alignment_file))[0]

        return join(dirname(alignment_file), stem + "_partition" + ext)

    @staticmethod
    def _charset_name(name):
        # Hyphens are not valid in unquoted NEXUS tokens
        return "'{}'".format(name) if "-" in name else name

    def _write_charset(self, fh, codon):

        fh.write("begin sets;\n")
        for part in self.partitions:
            if codon:
                for name, start, end in self.codon_subsets(part):
                    fh.write("charset {} = {}-{}\\3;\n".format(
                        self._charset_name(name), start, end))
            else:
                fh.write("charset {} = {}-{};\n".format(
                    self._charset_name(part.gene), part.start, part.end))
        fh.write("end;\n")

    def _write_raxml(self, fh, codon, datatype):

        dtype = "DNA, " if datatype == "dna" else ""

        for part in self.partitions:
            if codon:
                for name, start, end in self.codon_subsets(part):
                    fh.write("{}{} = {}-{}\\3\n".format(dtype, name, start,
                                                        end))
            else:
                fh.write("{}{} = {}-{}\n".format(dtype, part.gene,
                                                 part.start, part.end))

    def write_to_file(self, partition_format, output_file, datatype="dna"):
        """Writes the partitions to a file.

        Parameters
        ----------
        partition_format : str
            One of "charset", "nexus", "raxml" or their "-codon" variants.
            The charset formats are appended to `output_file`, which
            should be the NEXUS alignment file. The others create
            `output_file`.
        output_file : str
            Path to output file.
        datatype : str
            Data type of the alignment. The "DNA, " prefix of RAxML
            partitions is only written for "dna".
        """

        fmt, _, suffix = partition_format.partition("-")
        codon = suffix == "codon"

        if fmt == "charset":
            with open(output_file, "a") as fh:
                self._write_charset(fh, codon)

        elif fmt == "nexus":
            with open(output_file, "w") as fh:
                fh.write("#nexus\n")
                self._write_charset(fh, codon)

        elif fmt == "raxml":
            with open(output_file, "w") as fh:
                self._write_raxml(fh, codon, datatype)

        else:
            raise PartitionException("Unknown partition format "
                                     "{}".format(partition_format))


__author__ = "Diogo N. Silva"
