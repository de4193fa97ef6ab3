"""
Introduction to TriMSA's process module
=======================================

The `process` subpackage is the main backend of the TriMSA CLI program.
The most important classes are defined in the
:mod:`~trimsa.process.sequence` module:
:class:`~trimsa.process.sequence.Alignment` and
:class:`~trimsa.process.sequence.AlignmentList`.

What it does
------------

The `process` module contains the classes and functions responsible for
parsing, modifying and writing alignment data.

Submodules description
----------------------

:mod:`~trimsa.process.base`
~~~~~~~~~~~~~~~~~~~~~~~~~~~
Contains the alphabet validation, format detection and parsimony
informative site counting that are inherited or used by
:class:`~trimsa.process.sequence.Alignment` and
:class:`~trimsa.process.sequence.AlignmentList` objects, as well as the
terminal logging of the TriMSA CLI program.

:mod:`~trimsa.process.data`
~~~~~~~~~~~~~~~~~~~~~~~~~~~
Contains the :class:`~trimsa.process.data.Partitions` class, used to
read and write partition files.

:mod:`~trimsa.process.error_handling`
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Contains custom made Exception sub-classes.

:mod:`~trimsa.process.sequence`
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Contains the :class:`~trimsa.process.sequence.Alignment` and
:class:`~trimsa.process.sequence.AlignmentList` classes, responsible
for the majority of the heavy lifting when dealing with alignment files.

:mod:`~trimsa.process.batch`
~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Contains the operations that are applied independently to many alignment
files using a pool of worker threads.
"""
