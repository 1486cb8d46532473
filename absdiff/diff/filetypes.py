# Copyright Red Hat
#
# absdiff/diff/filetypes.py - Abstract diff file types
#
# This file is part of the absdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File type information support.
"""
from typing import Optional
import logging
import stat
import os
import magic

from absdiff import ABSDIFF_SUBSYSTEM_DIFF, AbsdiffSystemError

from .difftypes import DiffKind

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_warn = _log.warning


def _log_debug_diff(msg, *args, **kwargs):
    """A wrapper for diff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": ABSDIFF_SUBSYSTEM_DIFF}, **kwargs)


#: Recognized image file name suffixes, longest first.
IMAGE_SUFFIXES = (".nii.gz", ".nii")

#: Image file name suffixes that denote a gzip compressed file.
COMPRESSED_IMAGE_SUFFIXES = (".nii.gz",)

#: MIME types reported by magic for gzip compressed data.
GZIP_MIME_TYPES = ("application/gzip", "application/x-gzip")


def is_image_name(path: str) -> bool:
    """
    True if ``path`` names a recognized image file.

    :param path: The path to check.
    :type path: ``str``
    :returns: ``True`` if the file name has a recognized image suffix.
    :rtype: ``bool``
    """
    return os.path.basename(path).lower().endswith(IMAGE_SUFFIXES)


def is_compressed_name(path: str) -> bool:
    """
    True if ``path`` names a compressed image file.

    :param path: The path to check.
    :type path: ``str``
    :returns: ``True`` if the file name has a compressed image suffix.
    :rtype: ``bool``
    """
    return os.path.basename(path).lower().endswith(COMPRESSED_IMAGE_SUFFIXES)


def _stat(path: str, follow_symlinks: bool) -> os.stat_result:
    """
    Return ``os.stat()`` or ``os.lstat()`` data for ``path``.
    """
    try:
        return os.stat(path) if follow_symlinks else os.lstat(path)
    except OSError as err:
        raise AbsdiffSystemError(f"Could not stat {path}: {err}") from err


def type_desc(path: str, follow_symlinks: bool = True) -> str:
    """
    Return a string description of the type of object at ``path``: "file",
    "directory", "symbolic link" and so on.

    :param path: The path to describe.
    :type path: ``str``
    :param follow_symlinks: Describe the target of a symbolic link.
    :type follow_symlinks: ``bool``
    :returns: A string description of the entry type.
    :rtype: ``str``
    """
    mode = _stat(path, follow_symlinks).st_mode
    desc = "other"
    if stat.S_ISREG(mode):
        desc = "file"
    elif stat.S_ISDIR(mode):
        desc = "directory"
    elif stat.S_ISLNK(mode):
        desc = "symbolic link"
    elif stat.S_ISBLK(mode):
        desc = "block device"
    elif stat.S_ISCHR(mode):
        desc = "char device"
    elif stat.S_ISSOCK(mode):
        desc = "socket"
    elif stat.S_ISFIFO(mode):
        desc = "FIFO"
    return desc


def is_regular_file(path: str, follow_symlinks: bool = True) -> bool:
    """
    True if ``path`` is a regular file.

    :param path: The path to check.
    :type path: ``str``
    :param follow_symlinks: Examine the target of a symbolic link.
    :type follow_symlinks: ``bool``
    :returns: ``True`` if ``path`` is a regular file.
    :rtype: ``bool``
    """
    return stat.S_ISREG(_stat(path, follow_symlinks).st_mode)


class FileTypeDetector:
    """
    Classify paths into the kinds handled by the comparators.
    """

    def __init__(self, follow_symlinks: bool = True, use_magic: bool = False):
        """
        Initialise a new ``FileTypeDetector``.

        :param follow_symlinks: Classify symbolic links by their target.
        :type follow_symlinks: ``bool``
        :param use_magic: Inspect file content using magic where needed.
        :type use_magic: ``bool``
        """
        self.follow_symlinks = follow_symlinks
        self.use_magic = use_magic

    def detect_kind(self, left: str, right: str) -> DiffKind:
        """
        Select the kind of comparison for the pair ``left`` and ``right``.

        The left hand object decides between directory and symbolic link
        comparison; image comparison requires both names to carry an image
        suffix. Everything else is compared as a generic file.

        :param left: The left path.
        :type left: ``str``
        :param right: The right path.
        :type right: ``str``
        :returns: The comparison kind.
        :rtype: ``DiffKind``
        """
        if not self.follow_symlinks and (os.path.islink(left) or os.path.islink(right)):
            kind = DiffKind.SYMLINK
        elif os.path.isdir(left):
            kind = DiffKind.DIRECTORY
        elif is_image_name(left) and is_image_name(right):
            kind = DiffKind.IMAGE
        else:
            kind = DiffKind.FILE
        _log_debug_diff("Detected kind %s for %s vs %s", kind.value, left, right)
        return kind

    def is_compressed(self, path: str) -> Optional[bool]:
        """
        Determine whether the file at ``path`` holds gzip compressed data.

        When magic detection is disabled this only reports the expectation
        from the file name.

        :param path: The path to examine.
        :type path: ``str``
        :returns: ``True`` if ``path`` is compressed, ``False`` if it is not,
                  or ``None`` if magic detection failed.
        :rtype: ``Optional[bool]``
        """
        if not self.use_magic:
            return is_compressed_name(path)

        # c9s magic does not have magic.error
        if hasattr(magic, "error"):
            magic_errors = (magic.error, OSError, ValueError)
        else:
            magic_errors = (OSError, ValueError)

        try:
            fm = magic.detect_from_filename(path)
        except magic_errors as err:
            _log_warn("Error detecting file type for %s: %s", path, err)
            return None
        _log_debug_diff("Detected MIME type %s for %s", fm.mime_type, path)
        return fm.mime_type in GZIP_MIME_TYPES
