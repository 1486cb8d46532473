# Copyright Red Hat
#
# absdiff/diff/symlink.py - Abstract diff symbolic link comparison
#
# This file is part of the absdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Symbolic link comparison, used when symbolic links are not followed.
"""
from typing import Callable
import os

from absdiff import AbsdiffKindError, AbsdiffSystemError

from .difftypes import DiffKind
from .filetypes import type_desc
from .result import Diff
from .streams import no_checkpoint


class SymlinkComparator:
    """
    Compare two symbolic links by their target text.
    """

    kind = DiffKind.SYMLINK

    def compare(
        self, left: str, right: str, checkpoint: Callable[[], None] = no_checkpoint
    ) -> Diff:
        """
        Compare the symbolic links ``left`` and ``right``.

        :param left: The left link path.
        :type left: ``str``
        :param right: The right link path.
        :type right: ``str``
        :param checkpoint: Called before reading the links; raises to cancel.
        :type checkpoint: ``Callable[[], None]``
        :returns: The comparison result.
        :rtype: ``Diff``
        """
        if not (os.path.islink(left) and os.path.islink(right)):
            raise AbsdiffKindError(
                f"Cannot compare {left} ({type_desc(left, follow_symlinks=False)}) "
                f"with {right} ({type_desc(right, follow_symlinks=False)})"
            )
        checkpoint()
        d = Diff(left, right, self.kind)
        try:
            left_target = os.readlink(left)
            right_target = os.readlink(right)
        except OSError as err:
            raise AbsdiffSystemError(
                f"Could not read link {left} or {right}: {err}"
            ) from err

        if left_target == right_target:
            d.set_match()
        else:
            d.set_mismatch(
                f"symbolic link targets differ: {left_target} vs {right_target}"
            )
        return d
