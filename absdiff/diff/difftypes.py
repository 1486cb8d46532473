# Copyright Red Hat
#
# absdiff/diff/difftypes.py - Abstract diff types
#
# This file is part of the absdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Abstract diff types
"""
from enum import Enum


class DiffKind(Enum):
    """
    Enum for the kinds of object pair a comparator handles.
    """

    DIRECTORY = "directory"
    SYMLINK = "symlink"
    IMAGE = "image"
    FILE = "file"
