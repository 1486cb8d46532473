# Copyright Red Hat
#
# absdiff/diff/__init__.py - Abstract diff engine package
#
# This file is part of the absdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Abstract diff package.

Provides recursive comparison of directories, generic files and typed NIfTI
images. The main entry points are ``differ``, ``DiffEngine`` and
``DiffOptions``.
"""
from .difftypes import DiffKind
from .directory import DirectoryComparator
from .engine import DiffEngine, differ
from .image import ImageComparator
from .options import DiffOptions
from .result import Diff, SIMILARITY_UNSET
from .streams import FileComparator
from .symlink import SymlinkComparator

__all__ = [
    "Diff",
    "DiffEngine",
    "DiffKind",
    "DiffOptions",
    "DirectoryComparator",
    "FileComparator",
    "ImageComparator",
    "SIMILARITY_UNSET",
    "SymlinkComparator",
    "differ",
]
