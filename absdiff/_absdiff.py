# Copyright Red Hat
#
# absdiff/_absdiff.py - Abstract diff global definitions
#
# This file is part of the absdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Global definitions for the top-level absdiff package.
"""
import logging

# Absdiff debugging subsystem mask
ABSDIFF_DEBUG_COMMAND = 1
ABSDIFF_DEBUG_DIFF = 2
ABSDIFF_DEBUG_IMAGE = 4
ABSDIFF_DEBUG_ALL = ABSDIFF_DEBUG_COMMAND | ABSDIFF_DEBUG_DIFF | ABSDIFF_DEBUG_IMAGE

# Absdiff debugging subsystem names
ABSDIFF_SUBSYSTEM_COMMAND = "absdiff.command"
ABSDIFF_SUBSYSTEM_DIFF = "absdiff.diff"
ABSDIFF_SUBSYSTEM_IMAGE = "absdiff.image"

_DEBUG_MASK_TO_SUBSYSTEM = {
    ABSDIFF_DEBUG_COMMAND: ABSDIFF_SUBSYSTEM_COMMAND,
    ABSDIFF_DEBUG_DIFF: ABSDIFF_SUBSYSTEM_DIFF,
    ABSDIFF_DEBUG_IMAGE: ABSDIFF_SUBSYSTEM_IMAGE,
}

_debug_subsystems = set()

#: All suffixes are expressed in powers of two.
_SIZE_SUFFIXES = ("B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB")


class SubsystemFilter(logging.Filter):
    """
    Filters DEBUG records based on a set of enabled subsystem names.
    Non-DEBUG records or DEBUG records without a 'subsystem' attribute
    are always passed through.
    """

    def __init__(self, name=""):
        super().__init__(name)
        self.enabled_subsystems = set(_debug_subsystems)

    def filter(self, record):
        # Always pass non-DEBUG messages.
        if record.levelno != logging.DEBUG:
            return True

        # Always pass DEBUG messages that aren't for a specific subsystem.
        if not hasattr(record, "subsystem"):
            return True

        return record.subsystem in self.enabled_subsystems

    def set_debug_subsystems(self, subsystems):
        """Sets the collection of subsystems to allow."""
        self.enabled_subsystems = set(subsystems)


def get_debug_mask():
    """
    Return the current debug mask for the ``absdiff`` package.

    :returns: The current debug mask value
    :rtype: int
    """
    mask = 0
    for flag, subsystem_name in _DEBUG_MASK_TO_SUBSYSTEM.items():
        if subsystem_name in _debug_subsystems:
            mask |= flag
    return mask


def set_debug_mask(mask):
    """
    Set the debug mask for the ``absdiff`` package.

    :param mask: the logical OR of the ``ABSDIFF_DEBUG_*``
                 values to log.
    :rtype: None
    """
    # pylint: disable=global-statement
    global _debug_subsystems

    if mask < 0 or mask > ABSDIFF_DEBUG_ALL:
        raise ValueError(f"Invalid absdiff debug mask: {mask}")

    enabled_subsystems = []
    for flag, subsystem_name in _DEBUG_MASK_TO_SUBSYSTEM.items():
        if mask & flag:
            enabled_subsystems.append(subsystem_name)

    absdiff_log = logging.getLogger("absdiff")
    for handler in absdiff_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                f.set_debug_subsystems(enabled_subsystems)

    _debug_subsystems = set(enabled_subsystems)


def size_fmt(value):
    """
    Format a size in bytes as a human readable string using binary
    (power of two) units.

    :param value: The size in bytes.
    :type value: ``int``
    :returns: A human readable size string.
    :rtype: ``str``
    """
    size = float(value)
    for suffix in _SIZE_SUFFIXES[:-1]:
        if abs(size) < 1024.0:
            return f"{size:.1f}{suffix}" if suffix != "B" else f"{int(size)}B"
        size /= 1024.0
    return f"{size:.1f}{_SIZE_SUFFIXES[-1]}"


#
# Absdiff exception types
#


class AbsdiffError(Exception):
    """
    Base class for abstract diff errors.
    """


class AbsdiffSystemError(AbsdiffError):
    """
    An error when calling the operating system, for example a failed read.
    """


class AbsdiffNotFoundError(AbsdiffError):
    """
    A path supplied for comparison does not exist.
    """


class AbsdiffKindError(AbsdiffError):
    """
    The objects being compared are of incompatible kinds: for e.g. a
    directory on one side and a regular file on the other.
    """


class AbsdiffUnsupportedTypeError(AbsdiffError):
    """
    An image declares an element type that has no comparator.
    """


class AbsdiffStreamError(AbsdiffError):
    """
    The two sides of a streamed comparison fell out of step: for e.g. one
    file was truncated or grew while it was being read.
    """


class AbsdiffFormatError(AbsdiffError):
    """
    A file named as a recognized image is not a valid image.
    """


class AbsdiffRecursionError(AbsdiffError):
    """
    A directory comparison re-entered a directory pair that is already
    being compared (a symbolic link loop).
    """


class AbsdiffCancelledError(AbsdiffError):
    """
    The comparison was cancelled before it completed.
    """


__all__ = [
    "ABSDIFF_DEBUG_COMMAND",
    "ABSDIFF_DEBUG_DIFF",
    "ABSDIFF_DEBUG_IMAGE",
    "ABSDIFF_DEBUG_ALL",
    # Debug logging - subsystem name interface
    "SubsystemFilter",
    "ABSDIFF_SUBSYSTEM_COMMAND",
    "ABSDIFF_SUBSYSTEM_DIFF",
    "ABSDIFF_SUBSYSTEM_IMAGE",
    "set_debug_mask",
    "get_debug_mask",
    "size_fmt",
    "AbsdiffError",
    "AbsdiffSystemError",
    "AbsdiffNotFoundError",
    "AbsdiffKindError",
    "AbsdiffUnsupportedTypeError",
    "AbsdiffStreamError",
    "AbsdiffFormatError",
    "AbsdiffRecursionError",
    "AbsdiffCancelledError",
]
