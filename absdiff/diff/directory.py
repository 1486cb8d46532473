# Copyright Red Hat
#
# absdiff/diff/directory.py - Abstract diff directory comparison
#
# This file is part of the absdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Recursive directory comparison.
"""
from typing import Callable, FrozenSet, List, Tuple, TYPE_CHECKING
from multiprocessing.pool import ThreadPool
from functools import partial
import logging
import os

from absdiff import ABSDIFF_SUBSYSTEM_DIFF, AbsdiffKindError, AbsdiffSystemError

from .difftypes import DiffKind
from .filetypes import type_desc
from .result import Diff
from .streams import no_checkpoint

if TYPE_CHECKING:
    from .engine import DiffEngine

_log = logging.getLogger(__name__)

_log_debug = _log.debug


def _log_debug_diff(msg, *args, **kwargs):
    """A wrapper for diff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": ABSDIFF_SUBSYSTEM_DIFF}, **kwargs)


#: A pair of canonical directory paths under comparison
DirPair = Tuple[str, str]


def list_entries(path: str) -> List[str]:
    """
    Return the sorted entry names of directory ``path``.

    :param path: The directory to list.
    :type path: ``str``
    :returns: A sorted list of entry names.
    :rtype: ``List[str]``
    """
    try:
        return sorted(os.listdir(path))
    except OSError as err:
        raise AbsdiffSystemError(f"Could not list directory {path}: {err}") from err


def partition_entries(
    left_names: List[str], right_names: List[str]
) -> Tuple[List[str], List[str], List[str]]:
    """
    Partition two directory listings into left-only, right-only and common
    names. Every name appears in exactly one of the three lists.

    :param left_names: The left directory listing.
    :type left_names: ``List[str]``
    :param right_names: The right directory listing.
    :type right_names: ``List[str]``
    :returns: A tuple of (left_only, right_only, common) name lists: the
              left-only and common lists follow the left listing order and
              the right-only list follows the right listing order.
    :rtype: ``Tuple[List[str], List[str], List[str]]``
    """
    left_set = set(left_names)
    right_set = set(right_names)
    left_only = [name for name in left_names if name not in right_set]
    common = [name for name in left_names if name in right_set]
    right_only = [name for name in right_names if name not in left_set]
    return left_only, right_only, common


class DirectoryComparator:
    """
    Compare two directories by entry name and recurse into common entries.
    """

    kind = DiffKind.DIRECTORY

    def __init__(self, engine: "DiffEngine"):
        """
        Initialise a new ``DirectoryComparator``.

        :param engine: The engine used to compare common entries.
        :type engine: ``DiffEngine``
        """
        self.engine = engine

    @property
    def jobs(self) -> int:
        """The number of workers available for sibling entries."""
        return self.engine.options.jobs

    def _check_dirs(self, left: str, right: str):
        """
        Verify that both ``left`` and ``right`` are directories.

        :raises: ``AbsdiffKindError`` if either path is not a directory.
        """
        if os.path.isdir(left) and os.path.isdir(right):
            return
        raise AbsdiffKindError(
            f"Cannot compare {left} ({type_desc(left)}) "
            f"with {right} ({type_desc(right)})"
        )

    def _compare_children(
        self,
        children: List[Tuple[str, str]],
        ancestors: FrozenSet[DirPair],
        parallel: bool,
        checkpoint: Callable[[], None],
    ) -> List[Diff]:
        """
        Compare each pair of child paths in ``children``, in order.
        """
        diff_entry = partial(self.engine.diff_entry, ancestors=ancestors)
        if parallel and self.jobs > 1 and len(children) > 1:
            _log_debug_diff(
                "Comparing %d entries with %d workers", len(children), self.jobs
            )
            with ThreadPool(min(self.jobs, len(children))) as pool:
                return pool.starmap(diff_entry, children)

        sub_diffs = []
        for left_path, right_path in children:
            checkpoint()
            sub_diffs.append(diff_entry(left_path, right_path))
        return sub_diffs

    # pylint: disable=too-many-arguments
    def compare(
        self,
        left: str,
        right: str,
        checkpoint: Callable[[], None] = no_checkpoint,
        ancestors: FrozenSet[DirPair] = frozenset(),
        parallel: bool = False,
    ) -> Diff:
        """
        Compare the directories ``left`` and ``right``.

        :param left: The left directory path.
        :type left: ``str``
        :param right: The right directory path.
        :type right: ``str``
        :param checkpoint: Called at each entry boundary; raises to cancel.
        :type checkpoint: ``Callable[[], None]``
        :param ancestors: Canonical directory pairs already being compared,
                          including this one.
        :type ancestors: ``FrozenSet[DirPair]``
        :param parallel: Compare common entries using the worker pool.
        :type parallel: ``bool``
        :returns: The comparison result.
        :rtype: ``Diff``
        """
        self._check_dirs(left, right)
        d = Diff(left, right, self.kind)

        left_only, right_only, common = partition_entries(
            list_entries(left), list_entries(right)
        )
        d.left_only = left_only
        d.right_only = right_only
        d.common = common

        _log_debug_diff(
            "Directory %s vs %s: %d common, %d left only, %d right only",
            left,
            right,
            len(common),
            len(left_only),
            len(right_only),
        )

        children = [
            (os.path.join(left, name), os.path.join(right, name)) for name in common
        ]
        d.sub_diffs = self._compare_children(children, ancestors, parallel, checkpoint)

        differing = [sub for sub in d.sub_diffs if not sub.matches]
        if not left_only and not right_only and not differing:
            d.set_match()
            return d

        d.matches = False
        d.additional_info = (
            f"{len(left_only)} left only, {len(right_only)} right only, "
            f"{len(differing)} of {len(common)} common entries differ"
        )
        lines = [f"Directories {left} and {right} differ: {d.additional_info}"]
        if left_only:
            lines.append(f"Only in {left}: {', '.join(left_only)}")
        if right_only:
            lines.append(f"Only in {right}: {', '.join(right_only)}")
        lines.extend(sub.report for sub in differing)
        d.report = "\n".join(lines)
        return d
