# Copyright Red Hat
#
# absdiff/diff/engine.py - Abstract diff engine
#
# This file is part of the absdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Comparison dispatch: select a comparator for a pair of paths and run it.
"""
from typing import Dict, FrozenSet, Optional, Union
import threading
import logging
import os

from absdiff import (
    ABSDIFF_SUBSYSTEM_DIFF,
    AbsdiffCancelledError,
    AbsdiffError,
    AbsdiffNotFoundError,
    AbsdiffRecursionError,
)

from .difftypes import DiffKind
from .directory import DirectoryComparator, DirPair
from .filetypes import FileTypeDetector
from .image import ImageComparator
from .options import DiffOptions
from .result import Diff
from .streams import FileComparator
from .symlink import SymlinkComparator

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning


def _log_debug_diff(msg, *args, **kwargs):
    """A wrapper for diff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": ABSDIFF_SUBSYSTEM_DIFF}, **kwargs)


Comparator = Union[
    DirectoryComparator, FileComparator, ImageComparator, SymlinkComparator
]


class DiffEngine:
    """
    Dispatch comparisons to the comparator registered for each kind of
    file system object.
    """

    def __init__(self, options: Optional[DiffOptions] = None):
        """
        Initialise a new ``DiffEngine`` with the default comparators.

        :param options: Options controlling the comparison.
        :type options: ``Optional[DiffOptions]``
        """
        self.options: DiffOptions = options or DiffOptions()
        self.detector = FileTypeDetector(
            follow_symlinks=self.options.follow_symlinks,
            use_magic=self.options.use_magic_file_type,
        )
        self._cancelled = threading.Event()
        self.comparators: Dict[DiffKind, Comparator] = {}
        self.register(DirectoryComparator(self))
        self.register(ImageComparator(self.options, self.detector))
        self.register(FileComparator(self.options))
        self.register(SymlinkComparator())

    def register(self, comparator: Comparator):
        """
        Register ``comparator`` for its ``kind``, replacing any comparator
        previously registered for that kind.

        :param comparator: The comparator to register.
        """
        _log_debug_diff(
            "Registering %s for %s",
            comparator.__class__.__name__,
            comparator.kind.value,
        )
        self.comparators[comparator.kind] = comparator

    def cancel(self):
        """
        Request cancellation of any comparison running on this engine.
        """
        _log_info("Cancelling comparison")
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        """True if ``cancel()`` has been called."""
        return self._cancelled.is_set()

    def checkpoint(self):
        """
        Raise ``AbsdiffCancelledError`` if cancellation was requested.
        """
        if self._cancelled.is_set():
            raise AbsdiffCancelledError("Comparison cancelled")

    def _check_exists(self, left: str, right: str):
        """
        Verify that both paths exist.

        :raises: ``AbsdiffNotFoundError`` naming the missing side.
        """
        exists = os.path.exists if self.options.follow_symlinks else os.path.lexists
        left_exists = exists(left)
        right_exists = exists(right)
        if left_exists and right_exists:
            return
        if not left_exists and not right_exists:
            msg = f"Left path {left} and right path {right} do not exist"
        elif not left_exists:
            msg = f"Left path {left} does not exist"
        else:
            msg = f"Right path {right} does not exist"
        raise AbsdiffNotFoundError(msg)

    def _dispatch(
        self,
        left: str,
        right: str,
        ancestors: FrozenSet[DirPair] = frozenset(),
        parallel: bool = False,
    ) -> Diff:
        """
        Compare ``left`` and ``right`` using the comparator for their kind.
        """
        self.checkpoint()
        self._check_exists(left, right)
        kind = self.detector.detect_kind(left, right)
        comparator = self.comparators[kind]

        if kind != DiffKind.DIRECTORY:
            return comparator.compare(left, right, self.checkpoint)

        pair = (os.path.realpath(left), os.path.realpath(right))
        if pair in ancestors:
            raise AbsdiffRecursionError(
                f"Directory cycle detected comparing {left} vs {right}"
            )
        return comparator.compare(
            left,
            right,
            self.checkpoint,
            ancestors=ancestors | {pair},
            parallel=parallel,
        )

    def diff_entry(
        self, left: str, right: str, ancestors: FrozenSet[DirPair] = frozenset()
    ) -> Diff:
        """
        Compare a pair of common directory entries.

        With ``keep_going`` set errors are recorded in the returned ``Diff``
        rather than raised. Cancellation always propagates.

        :param left: The left entry path.
        :type left: ``str``
        :param right: The right entry path.
        :type right: ``str``
        :param ancestors: Canonical directory pairs enclosing this entry.
        :type ancestors: ``FrozenSet[DirPair]``
        :returns: The comparison result.
        :rtype: ``Diff``
        """
        try:
            return self._dispatch(left, right, ancestors)
        except AbsdiffCancelledError:
            raise
        except AbsdiffError as err:
            if not self.options.keep_going:
                raise
            _log_warn("Error comparing %s vs %s: %s", left, right, err)
            d = Diff(left, right)
            d.set_error(err)
            return d

    def differ(self, left: str, right: str) -> Diff:
        """
        Compare the file system objects ``left`` and ``right``.

        Directories are compared recursively; files named as images are
        compared element-wise by type; anything else is compared byte by
        byte.

        :param left: The left path.
        :type left: ``str``
        :param right: The right path.
        :type right: ``str``
        :returns: The comparison result.
        :rtype: ``Diff``
        :raises: ``AbsdiffError`` if the comparison could not be completed.
        """
        _log_debug_diff(
            "Comparing %s vs %s with options:\n%s", left, right, self.options
        )
        d = self._dispatch(left, right, parallel=self.options.jobs > 1)
        _log_debug_diff("Comparison of %s vs %s: matches=%s", left, right, d.matches)
        return d


def differ(left: str, right: str, options: Optional[DiffOptions] = None) -> Diff:
    """
    Compare the file system objects ``left`` and ``right``.

    :param left: The left path.
    :type left: ``str``
    :param right: The right path.
    :type right: ``str``
    :param options: Options controlling the comparison.
    :type options: ``Optional[DiffOptions]``
    :returns: The comparison result.
    :rtype: ``Diff``
    """
    return DiffEngine(options).differ(left, right)
