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
Custom exceptions raised while parsing, transforming and writing
alignment files. Every exception carries a message that identifies the
offending file and, where relevant, the expected and found values.
"""


class TriMSAError(Exception):
    """Base class of all TriMSA exceptions."""

    def __init__(self, value=""):
        super().__init__(value)
        self.message = value

    def __str__(self):
        return self.message


class InputError(TriMSAError):
    pass


class UnknownFormat(InputError):
    pass


class InvalidFormat(InputError):
    """Raised when a file does not follow the structure of its format
    (missing #NEXUS line, malformed header or data lines)."""
    pass


class DimensionMismatch(InputError):
    """Raised when the declared ntax or nchar of a NEXUS or PHYLIP file
    differ from the parsed matrix."""
    pass


class DuplicateTaxa(InputError):
    pass


class InvalidSequence(InputError):
    """Raised when a sequence has characters outside the alphabet of the
    selected data type."""
    pass


class AlignmentUnequalLength(InputError):
    pass


class EmptyAlignment(InputError):
    pass


class NoAlignmentsLeft(TriMSAError):
    pass


class OutputCollision(TriMSAError):
    pass


__author__ = "Diogo N. Silva"
