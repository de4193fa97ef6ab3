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
The `sequence` module of TriMSA contains the main classes that handle
alignment data. The :class:`~trimsa.process.sequence.Alignment` class
parses and writes single alignment files, while the
:class:`~trimsa.process.sequence.AlignmentList` class handles sets of
alignment files and performs the operations that involve them all, such
as concatenation and filtering.

Alignment data is kept in memory as an ordered mapping between taxon names
and sequence strings (the alignment matrix), together with a
:class:`~trimsa.process.sequence.Header` object with the dimensions and
symbols of the matrix. The insertion order of the taxa is the order in
which they are first found in the input, and it is preserved by every
transformation unless an explicit sort is requested. Transformations never
modify an `Alignment` in place. Instead, they return a new `Alignment`
object.

Progress reporting
------------------

Long operations of `AlignmentList` accept an optional `pbar` argument
with a `ProgressBar` object from the `progressbar2` package, which is
updated through the `_set_pipes` and `_update_pipes` methods inherited
from :class:`~trimsa.process.base.Base`. The results of the operations do
not depend on it.
"""

from trimsa.process.base import Base, guess_format, natural_sort, \
    count_informative_sites, split_output_format, input_formats, \
    missing_symbols
from trimsa.process.data import Partitions, PartitionException
from trimsa.process.error_handling import InvalidFormat, \
    DimensionMismatch, DuplicateTaxa, AlignmentUnequalLength, \
    EmptyAlignment, NoAlignmentsLeft, UnknownFormat

import os
import re
import math
import logging
from os.path import basename, splitext
from threading import Lock
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor, as_completed

logger = logging.getLogger(__name__)


class Header(object):
    """Dimensions and symbols of an alignment matrix.

    Parameters
    ----------
    ntax : int
        Number of taxa.
    nchar : int
        Number of characters, that is, the length of the longest sequence.
    datatype : str
        Data type tag, usually "dna" or "protein".
    missing : str
        Missing data symbol.
    gap : str
        Gap symbol.
    aligned : bool
        True when all sequences have the same length.
    """

    def __init__(self, ntax=0, nchar=0, datatype="dna", missing="?",
                 gap="-", aligned=False):

        self.ntax = ntax
        self.nchar = nchar
        self.datatype = datatype
        self.missing = missing
        self.gap = gap
        self.aligned = aligned

    def __eq__(self, other):
        return isinstance(other, Header) and vars(self) == vars(other)

    def __repr__(self):
        return "Header(ntax={}, nchar={}, datatype={}, missing={}, " \
               "gap={}, aligned={})".format(self.ntax, self.nchar,
                                            self.datatype, self.missing,
                                            self.gap, self.aligned)


def _nexus_blocks(fh):
    """Generator that yields the semicolon terminated blocks of a NEXUS
    file handle, without the terminating semicolon."""

    buf = []
    for line in fh:
        while ";" in line:
            head, line = line.split(";", 1)
            buf.append(head)
            yield "".join(buf).strip()
            buf = []
        buf.append(line)

    if "".join(buf).strip():
        yield "".join(buf).strip()


def _block_tokens(block):
    """Returns the tokens of a NEXUS header block, after the block keyword.
    Whitespace around '=' is removed, so that 'ntax = 4' and 'ntax=4'
    result in the same token. Only keys are lower cased, so values such as
    'missing=N' keep their case."""

    block = re.sub(r"\s*=\s*", "=", block)
    tokens = []
    for token in block.split()[1:]:
        key, sep, value = token.partition("=")
        tokens.append(key.lower() + sep + value)

    return tokens


def _matrix_lines(block):
    """Yields the (taxon, sequence) pairs of a NEXUS matrix block. Only
    lines with exactly two whitespace separated fields are considered."""

    for line in block.split("\n")[1:]:
        fields = line.split()
        if len(fields) == 2:
            yield fields[0], fields[1]


class Alignment(Base):
    """Main interface for single alignment files.

    The `Alignment` class is the main interface for single alignment files,
    providing methods that parse, query, transform and write alignment
    data. `Alignment` instances can be created by providing the
    `input_alignment` argument, which can be one of the following:

    - path to alignment file. In this case, the file is parsed according
      to `input_format` (detected from the file extension when "auto").

    - name of an alignment created in memory. In this case, the `matrix`
      argument must be provided, and optionally the `header`.

    Parameters
    ----------
    input_alignment : str
        Path to the alignment file or name of the in-memory alignment.
    input_format : str
        One of "auto", "fasta", "nexus" or "phylip".
    datatype : str
        One of "dna", "aa" or "ignore". Sequences are validated against
        the alphabet of this data type, except for "ignore".
    matrix : OrderedDict, optional
        Taxon names (keys) and sequences (values) of an in-memory alignment.
    header : Header, optional
        Header of an in-memory alignment. If not provided, it is computed
        from `matrix`.
    partitions : trimsa.process.data.Partitions, optional
        Partitions of the alignment.

    Attributes
    ----------
    path : str
        Full path to alignment file.
    name : str
        Basename of the alignment file with the extension.
    sname : str
        Basename of the alignment file without the extension.
    input_format : str
        Format of the input alignment file.
    datatype : str
        Data type of the sequences.
    matrix : OrderedDict
        Taxon names (keys) and sequences (values), in input order.
    header : Header
        Dimensions and symbols of the alignment.
    partitions : trimsa.process.data.Partitions
        Partitions of the alignment. Set after concatenation.

    Raises
    ------
    InvalidFormat
        When the file does not follow the structure of its format.
    DimensionMismatch
        When the declared dimensions differ from the parsed matrix.
    DuplicateTaxa
        When a taxon name is found twice.
    InvalidSequence
        When a sequence has characters outside the data type alphabet.

    See Also
    --------
    AlignmentList
    """

    def __init__(self, input_alignment, input_format="auto", datatype="dna",
                 matrix=None, header=None, partitions=None):

        self.path = input_alignment
        self.name = basename(input_alignment)
        self.sname = splitext(self.name)[0]
        self.datatype = datatype

        if isinstance(partitions, Partitions):
            self.partitions = partitions
        else:
            self.partitions = Partitions()

        self.matrix = OrderedDict()
        self.header = Header(datatype=self._header_datatype())

        if matrix is not None:
            self.input_format = None if input_format == "auto" \
                else input_format
            self.matrix = OrderedDict(matrix)
            self.header = header if header else self._build_header()
        else:
            self.input_format = self._set_format(input_format)
            self.read_alignment()

    def __iter__(self):
        """Iterator of (taxon, sequence) tuples."""
        return iter(self.matrix.items())

    def __len__(self):
        return len(self.matrix)

    def _set_format(self, input_format):

        if input_format == "auto":
            return guess_format(self.path)

        if input_format not in input_formats:
            raise UnknownFormat("Unknown input format {}".format(
                input_format))

        return input_format

    def _header_datatype(self):
        return "protein" if self.datatype == "aa" else "dna"

    def _build_header(self, aligned=None):
        """Creates a `Header` from the current matrix."""

        lengths = set(len(x) for x in self.matrix.values())

        return Header(ntax=len(self.matrix),
                      nchar=max(lengths) if lengths else 0,
                      datatype=self.header.datatype,
                      missing=self.header.missing,
                      gap=self.header.gap,
                      aligned=len(lengths) <= 1 if aligned is None
                      else aligned)

    def _insert_data(self, taxon, seq):
        """Adds a new taxon to the matrix, after validating its sequence."""

        if taxon in self.matrix:
            raise DuplicateTaxa("Duplicate taxa in file {}. First duplicate "
                                "found: {}".format(self.path, taxon))

        self.check_sequence(taxon, seq)
        self.matrix[taxon] = seq

    def _check_dimensions(self, ntax, nchar):
        """Compares the declared dimensions with the parsed matrix."""

        if len(self.matrix) != ntax:
            raise DimensionMismatch(
                "Error reading {} file {}. The number of taxa does not match "
                "the information in the header. In the header: {} and taxa "
                "found: {}".format(self.input_format, self.path, ntax,
                                   len(self.matrix)))

        if self.header.nchar != nchar:
            raise DimensionMismatch(
                "Error reading {} file {}. The nchar value in the header "
                "does not match the sequence length. In the header: {} and "
                "sequence length: {}".format(self.input_format, self.path,
                                             nchar, self.header.nchar))

    def _read_fasta(self):
        """Alignment parser for fasta format.

        Sequence lines are concatenated until the next '>' line or the end
        of the file. The dimensions are derived from the parsed matrix.

        See Also
        --------
        read_alignment
        """

        taxon = None
        sequence = []

        with open(self.path) as fh:
            for line in fh:
                line = line.strip()

                if line.startswith(">"):
                    if taxon is not None:
                        self._insert_data(taxon, "".join(sequence))
                    taxon = line[1:].strip()
                    sequence = []

                elif line and taxon is not None:
                    sequence.append(line)

        if taxon is not None:
            self._insert_data(taxon, "".join(sequence))

        self.header = self._build_header()

    def _read_nexus(self):
        """Alignment parser for nexus format.

        The file is read as a sequence of blocks terminated by ';'. Only
        the dimensions, format and matrix blocks are interpreted. In
        interleave files, the sequence chunks of the same taxon are joined
        in the order in which the blocks appear.

        See Also
        --------
        read_alignment
        """

        ntax = nchar = 0
        interleave = False

        with open(self.path) as fh:

            header = fh.readline()
            if not header.strip().lower().startswith("#nexus"):
                raise InvalidFormat("The file {} is not a valid nexus file. "
                                    "Its first line must start with "
                                    "#NEXUS".format(self.path))

            for block in _nexus_blocks(fh):
                keyword = block.lower()

                if keyword.startswith("dimensions"):
                    for token in _block_tokens(block):
                        if token.startswith("ntax="):
                            ntax = self._parse_int(token)
                        elif token.startswith("nchar="):
                            nchar = self._parse_int(token)

                elif keyword.startswith("format"):
                    for token in _block_tokens(block):
                        key, _, value = token.partition("=")
                        if key == "datatype" and value:
                            self.header.datatype = value.lower()
                        elif key == "missing" and value:
                            self.header.missing = value[0]
                        elif key == "gap" and value:
                            self.header.gap = value[0]
                        elif key == "interleave":
                            interleave = value.lower() != "no"

                elif keyword.startswith("matrix"):
                    # Interleave rounds hold ntax lines, one per taxon
                    round_taxa = set()
                    for p, (taxon, seq) in enumerate(_matrix_lines(block)):
                        if interleave and ntax and p % ntax == 0:
                            round_taxa = set()
                        if interleave and taxon in self.matrix and \
                                taxon not in round_taxa:
                            self.check_sequence(taxon, seq)
                            self.matrix[taxon] += seq
                        else:
                            self._insert_data(taxon, seq)
                        if ntax:
                            round_taxa.add(taxon)

        self.header = self._build_header()
        self._check_dimensions(ntax, nchar)

    def _parse_int(self, token):

        try:
            return int(token.split("=", 1)[1])
        except ValueError:
            raise InvalidFormat("Cannot parse '{}' in file {}. The value is "
                                "not a number".format(token, self.path))

    def _parse_phylip_header(self, line):

        fields = line.split() if line else []

        try:
            ntax, nchar = [int(x) for x in fields]
        except ValueError:
            raise InvalidFormat("Unknown phylip header in file {}. Expected "
                                "the number of taxa and the number of "
                                "characters, found: '{}'".format(
                                    self.path, line))

        return ntax, nchar

    def _read_phylip(self):
        """Alignment parser for phylip format.

        Supports both sequential and interleave phylip. The first `ntax`
        lines after the header must have the taxon name and its sequence.
        Any following line is a sequence chunk that is appended to the taxon
        at the corresponding cyclic position.

        See Also
        --------
        read_alignment
        """

        with open(self.path) as fh:

            lines = (x.strip() for x in fh)
            ntax, nchar = self._parse_phylip_header(
                next((x for x in lines if x), None))

            taxa = []
            pos = 0

            for line in lines:
                if not line:
                    continue

                if len(taxa) < ntax:
                    fields = line.split()
                    if len(fields) != 2:
                        raise InvalidFormat(
                            "Failed parsing phylip file {}. Expected a taxon "
                            "name and a sequence separated by whitespace, "
                            "but found {} fields in line '{}'. Did you mean "
                            "an interleaved phylip file?".format(
                                self.path, len(fields), line))
                    self._insert_data(*fields)
                    taxa.append(fields[0])

                elif not taxa:
                    raise DimensionMismatch(
                        "Error reading phylip file {}. The header declares "
                        "no taxa, but sequence data was found".format(
                            self.path))

                else:
                    taxon = taxa[pos % ntax]
                    chunk = "".join(line.split())
                    self.check_sequence(taxon, chunk)
                    self.matrix[taxon] += chunk
                    pos += 1

        self.header = self._build_header()
        self._check_dimensions(ntax, nchar)

    def read_alignment(self):
        """Main alignment parser method.

        This is the main alignment parsing method that is called when the
        `Alignment` object is instantiated with a file path as the argument.
        Given the alignment format set in `__init__`, it calls the specific
        method that parses that alignment format.
        """

        parsing_methods = {
            "phylip": self._read_phylip,
            "fasta": self._read_fasta,
            "nexus": self._read_nexus,
        }

        parsing_methods[self.input_format]()

        logger.debug("Parsed %s taxa and %s characters from %s",
                     self.header.ntax, self.header.nchar, self.path)

    @staticmethod
    def parse_only_id(path, input_format="auto"):
        """Retrieves the taxon names of an alignment file without parsing
        its sequences.

        Parameters
        ----------
        path : str
            Path to alignment file.
        input_format : str
            One of "auto", "fasta", "nexus" or "phylip".

        Returns
        -------
        list
            Taxon names in the order of the file.

        Raises
        ------
        DimensionMismatch
            When the number of taxa of a nexus or phylip file does not match
            the declared ntax.
        """

        if input_format == "auto":
            input_format = guess_format(path)

        ids = []
        ntax = None

        with open(path) as fh:

            if input_format == "fasta":
                ids = [x.strip()[1:].strip() for x in fh
                       if x.strip().startswith(">")]

            elif input_format == "nexus":
                if not fh.readline().strip().lower().startswith("#nexus"):
                    raise InvalidFormat("The file {} is not a valid nexus "
                                        "file".format(path))
                ntax = 0
                seen = set()
                for block in _nexus_blocks(fh):
                    keyword = block.lower()
                    if keyword.startswith("dimensions"):
                        for token in _block_tokens(block):
                            if token.startswith("ntax="):
                                ntax = int(token.split("=", 1)[1])
                    elif keyword.startswith("matrix"):
                        # Interleave matrices repeat the taxon names
                        for taxon, _ in _matrix_lines(block):
                            if taxon not in seen:
                                seen.add(taxon)
                                ids.append(taxon)

            elif input_format == "phylip":
                lines = (x.strip() for x in fh)
                header = next((x for x in lines if x), "")
                try:
                    ntax = int(header.split()[0]) if header else 0
                except ValueError:
                    raise InvalidFormat("Unknown phylip header in file {}: "
                                        "'{}'".format(path, header))
                for line in lines:
                    if len(ids) == ntax:
                        break
                    if line:
                        ids.append(line.split()[0])

        if ntax is not None and len(ids) != ntax:
            raise DimensionMismatch(
                "Failed parsing {}. The number of taxa does not match the "
                "information in the header. In the header: {} and taxa "
                "found: {}".format(path, ntax, len(ids)))

        return ids

    def check_is_alignment(self):
        """Raises AlignmentUnequalLength when the sequences do not have
        the same length."""

        if not self.header.aligned:
            raise AlignmentUnequalLength("Found an invalid alignment file. "
                                         "{} is not an alignment.".format(
                                             self.path))

    def _derive(self, matrix, name=None, header=None):
        """Creates a new `Alignment` from a transformed matrix, keeping the
        data type and symbols of the current one."""

        aln = Alignment(name or self.path,
                        input_format=self.input_format or "auto",
                        datatype=self.datatype, matrix=matrix,
                        header=header)

        if header is None:
            aln.header.datatype = self.header.datatype
            aln.header.missing = self.header.missing
            aln.header.gap = self.header.gap

        return aln

    def sort_taxa(self):
        """Returns a new `Alignment` with the taxa in alphabetical order."""

        return self._derive(OrderedDict(sorted(self.matrix.items())))

    def remove_taxa(self, taxa_list=None, mode="remove", regex=None):
        """Removes or keeps a set of taxa.

        Parameters
        ----------
        taxa_list : list, optional
            Taxon names.
        mode : str
            "remove" drops the taxa in `taxa_list` or matching `regex`.
            "inverse" keeps only those taxa.
        regex : str, optional
            Regular expression searched in the taxon names, used in
            addition to `taxa_list`.

        Returns
        -------
        Alignment
            New alignment without the removed taxa.
        """

        selection = set(taxa_list or [])
        pattern = re.compile(regex) if regex else None

        def selected(taxon):
            return taxon in selection or \
                bool(pattern and pattern.search(taxon))

        keep = mode == "inverse"

        return self._derive(OrderedDict(
            (taxon, seq) for taxon, seq in self.matrix.items()
            if selected(taxon) == keep))

    def rename_taxa(self, mapping):
        """Returns a new `Alignment` with taxa renamed according to the
        `mapping` dictionary. Taxa absent from `mapping` keep their name."""

        matrix = OrderedDict()
        for taxon, seq in self.matrix.items():
            new_name = mapping.get(taxon, taxon)
            if new_name in matrix:
                raise DuplicateTaxa("Renaming taxa of {} creates duplicate "
                                    "taxa. First duplicate found: "
                                    "{}".format(self.path, new_name))
            matrix[new_name] = seq

        return self._derive(matrix)

    def replace_in_taxa(self, pattern, replacement="", regex=False):
        """Removes (or replaces) a string from all taxon names.

        Parameters
        ----------
        pattern : str
            String to find in the taxon names. Interpreted as a regular
            expression if `regex` is True.
        replacement : str
            Replacement string. By default, `pattern` is removed.
        regex : bool
            Whether `pattern` is a regular expression.
        """

        if regex:
            expr = re.compile(pattern)
            mapping = dict((x, expr.sub(replacement, x)) for x in self.matrix)
        else:
            mapping = dict((x, x.replace(pattern, replacement))
                           for x in self.matrix)

        return self.rename_taxa(mapping)

    def informative_sites(self):
        return count_informative_sites(self.matrix.values(), self.datatype)

    def missing_data(self):
        """Proportion of gap and missing data characters in the matrix."""

        total = self.header.ntax * self.header.nchar
        if not total:
            return 0.

        missing = sum(self._count_gaps(seq) for seq in self.matrix.values())

        return missing / total

    @staticmethod
    def _count_gaps(seq):
        return sum(seq.count(x) for x in missing_symbols)

    def unalign(self):
        """Returns a new `Alignment` with the gap and missing data symbols
        removed from every sequence. The result is usually not an
        alignment anymore."""

        table = str.maketrans("", "", "".join(missing_symbols))

        return self._derive(OrderedDict(
            (taxon, seq.translate(table)) for taxon, seq in
            self.matrix.items()))

    def remove_gappy_sequences(self, threshold):
        """Removes the sequences with too many gaps.

        The maximum number of gap and missing data characters is the
        alignment length times `threshold`, rounded down. A sequence with
        that many gaps is kept.

        Parameters
        ----------
        threshold : float
            Maximum proportion (0 to 1) of gaps in a sequence.

        Returns
        -------
        Alignment
            New alignment with the selected sequences.
        """

        max_gaps = int(math.floor(self.header.nchar * threshold))

        return self._derive(OrderedDict(
            (taxon, seq) for taxon, seq in self.matrix.items()
            if self._count_gaps(seq) <= max_gaps))

    def filter_sequence_length(self, min_len=None, max_len=None):
        """Keeps the sequences whose length without gaps and missing data
        is within [`min_len`, `max_len`]. A None value leaves that side of
        the range open."""

        def passes(seq):
            length = len(seq) - self._count_gaps(seq)
            if min_len is not None and length < min_len:
                return False
            return max_len is None or length <= max_len

        return self._derive(OrderedDict(
            (taxon, seq) for taxon, seq in self.matrix.items()
            if passes(seq)))

    def reverse_concatenate(self, partitions, prefix=None):
        """Splits the alignment into one alignment per partition.

        Each partition is sliced from every sequence of the alignment.
        Taxa whose slice has only gap and missing data characters are not
        included in the new alignment.

        Parameters
        ----------
        partitions : trimsa.process.data.Partitions
            Partitions with 1-based, inclusive ranges.
        prefix : str, optional
            Prefix of the names of the new alignments, which are otherwise
            named after the partitions.

        Returns
        -------
        list
            One `Alignment` object per partition.

        Raises
        ------
        PartitionException
            When a partition ends after the end of the alignment.
        """

        alignments = []

        for part in partitions:

            if part.end > self.header.nchar:
                raise PartitionException(
                    "Partition {} ends at position {}, after the end of the "
                    "alignment {} ({} characters)".format(
                        part.gene, part.end, self.path, self.header.nchar))

            matrix = OrderedDict()
            for taxon, seq in self.matrix.items():
                chunk = seq[part.start - 1:part.end]
                if chunk.strip("".join(missing_symbols)):
                    matrix[taxon] = chunk

            header = Header(ntax=len(matrix),
                            nchar=part.end - part.start + 1,
                            datatype=self._header_datatype(),
                            missing=self.header.missing,
                            gap=self.header.gap,
                            aligned=True)

            name = "{}_{}".format(prefix, part.gene) if prefix else part.gene

            if not matrix:
                logger.warning("Partition %s of %s has no sequence data",
                               part.gene, self.path)

            alignments.append(self._derive(matrix, name=name, header=header))

        return alignments

    @staticmethod
    def _chunk_size(nchar):
        return 80 if nchar < 2000 else 500

    def _padded(self):
        """Returns a function that pads taxon names to the length of the
        longest name plus one space."""

        max_len = max(len(x) for x in self.matrix) if self.matrix else 0

        def pad(taxon):
            return taxon + " " * (max(max_len - len(taxon), 0) + 1)

        return pad

    def _get_interleave_data(self):
        """Returns a list of rounds for interleave output, each round being
        a list of (taxon, sequence chunk) tuples."""

        size = self._chunk_size(self.header.nchar)
        rounds = []

        for i in range(0, self.header.nchar, size):
            rounds.append([(taxon, seq[i:i + size]) for taxon, seq in
                           self.matrix.items()])

        return rounds

    def _write_fasta(self, fh, interleave=False):

        size = self._chunk_size(self.header.nchar)

        for taxon, seq in self.matrix.items():
            fh.write(">{}\n".format(taxon))
            if interleave:
                for i in range(0, len(seq), size):
                    fh.write(seq[i:i + size] + "\n")
            else:
                fh.write(seq + "\n")

    def _write_matrix(self, fh, interleave, ids_in_all_rounds=True):

        pad = self._padded()

        if not interleave:
            fh.write("\n")
            for taxon, seq in self.matrix.items():
                fh.write(pad(taxon) + seq + "\n")
            return

        for p, chunks in enumerate(self._get_interleave_data()):
            # A newline precedes each round
            fh.write("\n")
            for taxon, chunk in chunks:
                if p == 0 or ids_in_all_rounds:
                    fh.write(pad(taxon) + chunk + "\n")
                else:
                    fh.write(chunk + "\n")

    def _write_nexus_header(self, fh, interleave):

        fh.write("#NEXUS\nbegin data;\n")
        fh.write("dimensions ntax={} nchar={};\n".format(
            self.header.ntax, self.header.nchar))
        fh.write("format datatype={} missing={} gap={}{};\n".format(
            self.header.datatype, self.header.missing, self.header.gap,
            " interleave" if interleave else ""))

    def _write_nexus(self, fh, interleave=False):

        self._write_nexus_header(fh, interleave)
        fh.write("matrix")
        self._write_matrix(fh, interleave)
        fh.write(";\nend;\n")

    def _write_phylip(self, fh, interleave=False):

        fh.write("{} {}".format(self.header.ntax, self.header.nchar))
        self._write_matrix(fh, interleave, ids_in_all_rounds=False)

    def write_to_file(self, output_format, output_file,
                      partition_format=None):
        """Writes the alignment to a file.

        Parameters
        ----------
        output_format : str
            One of "fasta", "nexus", "phylip" or their interleave
            counterparts "fasta-int", "nexus-int" and "phylip-int".
        output_file : str
            Path to the output file, including the extension.
        partition_format : str, optional
            If provided and the alignment has partitions, they are written
            in this format. Charset partitions are appended to nexus
            output files. Other partition formats, or any partition format
            for fasta and phylip output, are written to a companion file
            next to `output_file`.

        Returns
        -------
        str or None
            Path to the companion partition file, if any.
        """

        fmt, interleave = split_output_format(output_format)

        writing_methods = {
            "fasta": self._write_fasta,
            "nexus": self._write_nexus,
            "phylip": self._write_phylip
        }

        with open(output_file, "w") as fh:
            writing_methods[fmt](fh, interleave)

        logger.debug("Wrote %s in %s format", output_file, output_format)

        if not partition_format or not len(self.partitions):
            return None

        if partition_format.startswith("charset"):
            if fmt == "nexus":
                self.partitions.write_to_file(partition_format, output_file,
                                              self.datatype)
                return None
            # Charset blocks cannot be embedded in other formats
            partition_format = partition_format.replace("charset", "nexus")

        part_file = Partitions.partition_path(output_file, partition_format)
        self.partitions.write_to_file(partition_format, part_file,
                                      self.datatype)

        return part_file


class AlignmentList(Base):
    """Interface for sets of alignment files.

    The `AlignmentList` class handles a set of alignment files that share
    the same format and data type. The files are sorted in natural order
    (locus2 before locus10), which determines the order of concatenation.
    The alignments are parsed on demand, one at a time, so that large data
    sets are never completely loaded in memory, except for the result of
    the concatenation.

    Operations that evaluate each file independently, such as the filters,
    use a pool of worker threads.

    Parameters
    ----------
    alignment_list : list
        Paths to alignment files.
    input_format : str
        One of "auto", "fasta", "nexus" or "phylip".
    datatype : str
        One of "dna", "aa" or "ignore".
    threads : int, optional
        Number of worker threads. Defaults to the number of processors.

    Attributes
    ----------
    files : list
        Paths to the alignment files in natural order.
    """

    def __init__(self, alignment_list, input_format="auto", datatype="dna",
                 threads=None):

        self.files = natural_sort(alignment_list)
        self.input_format = input_format
        self.datatype = datatype
        self.threads = threads
        self._taxa_names = None

    def __iter__(self):
        return self.iter_alignments()

    def __len__(self):
        return len(self.files)

    def retrieve_alignment(self, path):
        return Alignment(path, input_format=self.input_format,
                         datatype=self.datatype)

    def iter_alignments(self):
        """Generator of the parsed `Alignment` objects, in natural order."""

        for path in self.files:
            yield self.retrieve_alignment(path)

    @property
    def taxa_names(self):
        """Union of the taxon names of all alignments, in order of
        appearance. Only taxon names are parsed from the files."""

        if self._taxa_names is None:
            taxa = OrderedDict()
            for path in self.files:
                for taxon in Alignment.parse_only_id(path, self.input_format):
                    taxa[taxon] = None
            self._taxa_names = list(taxa)

        return self._taxa_names

    def _map_files(self, func, pbar=None):
        """Applies `func` to the `Alignment` of each file using a pool of
        worker threads.

        Parameters
        ----------
        func : function
            Receives an `Alignment` object.
        pbar : ProgressBar, optional
            Progress bar updated after each file.

        Returns
        -------
        OrderedDict
            Paths (keys) and results of `func` (values) in natural order.
        """

        lock = Lock()
        done = 0
        results = {}

        self._set_pipes(pbar, len(self.files))

        def task(path):
            nonlocal done
            res = func(self.retrieve_alignment(path))
            with lock:
                done += 1
                self._update_pipes(pbar, done)
            return res

        with ThreadPoolExecutor(max_workers=self.threads or
                                os.cpu_count()) as executor:
            futures = dict((executor.submit(task, x), x) for x in self.files)
            try:
                for future in as_completed(futures):
                    path = futures[future]
                    results[path] = future.result()
            except Exception:
                logger.exception("Task failed for file %s", path)
                for future in futures:
                    future.cancel()
                raise

        self._reset_pipes(pbar)

        return OrderedDict((x, results[x]) for x in self.files)

    def _collect(self, stat, pbar=None):
        """Computes `stat` for each alignment, after making sure that the
        file is an alignment."""

        def get_stat(aln):
            aln.check_is_alignment()
            return stat(aln)

        return self._map_files(get_stat, pbar)

    @staticmethod
    def _test_range(s, min_val, max_val):
        """Test if a given `s` integer is inside a specified range.

        Both `min_val` and `max_val` are inclusive. A None value means the
        range is not bounded on that side.
        """

        if min_val is not None and s < min_val:
            return False
        if max_val is not None and s > max_val:
            return False
        return True

    @staticmethod
    def _check_result(passing):

        if not passing:
            raise NoAlignmentsLeft("No alignments left after filtering!")

        return passing

    def concatenate(self, pbar=None):
        """Concatenates the alignments into a single `Alignment`.

        The taxa of the concatenated alignment are the union of the taxa of
        all alignments. When a taxon is absent from an alignment, its
        sequence is filled with missing data ('?') for the length of that
        alignment. A partition named after each alignment file is created
        with its range in the concatenated matrix.

        Parameters
        ----------
        pbar : ProgressBar, optional
            Progress bar updated after each alignment.

        Returns
        -------
        Alignment
            Concatenated alignment, with the `partitions` attribute set.

        Raises
        ------
        EmptyAlignment
            When an alignment has no taxa.
        AlignmentUnequalLength
            When a file is not an alignment.
        """

        taxa = self.taxa_names
        concatenation = OrderedDict((x, []) for x in taxa)
        partitions = Partitions()

        self._set_pipes(pbar, len(self.files))

        for p, aln in enumerate(self.iter_alignments()):

            aln.check_is_alignment()

            if aln.header.ntax == 0:
                raise EmptyAlignment("Found an empty alignment "
                                     "{}".format(aln.path))

            nchar = aln.header.nchar
            partitions.add_partition(aln.sname, length=nchar)

            for taxon, seq_list in concatenation.items():
                seq_list.append(aln.matrix.get(taxon, "?" * nchar))

            self._update_pipes(pbar, p + 1)

        self._reset_pipes(pbar)

        matrix = OrderedDict((x, "".join(y)) for x, y in
                             concatenation.items())

        header = Header(ntax=len(matrix), nchar=partitions.counter,
                        datatype="protein" if self.datatype == "aa"
                        else "dna",
                        aligned=True)

        logger.debug("Concatenated %s alignments with %s taxa",
                     len(self.files), len(matrix))

        return Alignment("concatenated", datatype=self.datatype,
                         matrix=matrix, header=header, partitions=partitions)

    def get_min_taxa(self, percent):
        """Minimum number of taxa corresponding to `percent` (0 to 1) of
        the total number of taxa, rounded down."""

        return int(math.floor(len(self.taxa_names) * percent))

    def filter_min_taxa(self, min_taxa, pbar=None):
        """Returns the files with at least `min_taxa` taxa."""

        ntax = self._collect(lambda aln: aln.header.ntax, pbar)

        return self._check_result([x for x, n in ntax.items()
                                   if n >= min_taxa])

    def filter_alignment_length(self, min_len=None, max_len=None, pbar=None):
        """Returns the files whose alignment length is within
        [`min_len`, `max_len`]."""

        nchar = self._collect(lambda aln: aln.header.nchar, pbar)

        return self._check_result([x for x, n in nchar.items() if
                                   self._test_range(n, min_len, max_len)])

    def get_informative_sites(self, pbar=None):
        """Parsimony informative sites of each file, in natural order."""

        return self._collect(lambda aln: aln.informative_sites(), pbar)

    def filter_informative_sites(self, min_val=None, max_val=None,
                                 pbar=None, counts=None):
        """Returns the files whose number of parsimony informative sites is
        within [`min_val`, `max_val`]. Previously computed `counts` of
        `get_informative_sites` may be provided."""

        if counts is None:
            counts = self.get_informative_sites(pbar)

        return self._check_result([x for x, n in counts.items() if
                                   self._test_range(n, min_val, max_val)])

    def filter_informative_percent(self, percent, pbar=None, counts=None):
        """Returns the files with a number of parsimony informative sites
        of at least `percent` (0 to 1) of the maximum found in the data
        set, rounded down."""

        if counts is None:
            counts = self.get_informative_sites(pbar)
        threshold = int(math.floor(max(counts.values()) * percent)) \
            if counts else 0

        logger.debug("Minimum parsimony informative sites: %s", threshold)

        return self._check_result([x for x, n in counts.items()
                                   if n >= threshold])

    def filter_missing_data(self, threshold, pbar=None):
        """Returns the files whose proportion of gaps and missing data is
        at most `threshold` (0 to 1)."""

        missing = self._collect(lambda aln: aln.missing_data(), pbar)

        return self._check_result([x for x, m in missing.items()
                                   if m <= threshold])

    def filter_by_taxa(self, taxa_list, pbar=None):
        """Returns the files that contain all taxa in `taxa_list`."""

        taxa = set(taxa_list)
        contains = self._collect(
            lambda aln: taxa.issubset(aln.matrix), pbar)

        return self._check_result([x for x, c in contains.items() if c])

    def write_taxa_to_file(self, file_name="Taxa_list.txt"):
        """Writes the union of taxon names of all files, one per line."""

        with open(file_name, "w") as fh:
            for taxon in natural_sort(self.taxa_names):
                fh.write(taxon + "\n")


__author__ = "Diogo N. Silva"
