"""
Welcome to the TriMSA API reference guide. This reference guide details
the sub-packages and modules used by TriMSA.

What is TriMSA
==============

TriMSA is a command line application and library to convert, concatenate,
split and filter multiple sequence alignments used in phylogenomics. It
reads and writes FASTA, NEXUS and PHYLIP (sequential and interleaved)
alignments, together with the partition files (NEXUS charset blocks and
RAxML partition files) that describe the gene boundaries of concatenated
matrices.

How can TriMSA be used
======================

TriMSA can be used as a:

    - Command line application (TriMSA).
    - Library of classes to parse, modify and export alignment data.

Components of TriMSA
====================

Process backend
---------------

The main functionality of the TriMSA CLI program is provided by the
modules in the :mod:`trimsa.process` sub package. Classes that handle
alignment data are defined in :mod:`trimsa.process.sequence`, partitions
are handled in the :mod:`trimsa.process.data` module and the operations
that fan out over many files are defined in :mod:`trimsa.process.batch`.

Command line
------------

The command line interface is defined in :mod:`trimsa.TriMSA`, with the
argument consistency checks in :mod:`trimsa.base.sanity`.
"""

__version__ = "0.1.0"
__author__ = "Diogo N. Silva"
__copyright__ = "Diogo N. Silva"
__license__ = "GPL3"
__status__ = "4 - Beta"
