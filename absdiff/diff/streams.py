# Copyright Red Hat
#
# absdiff/diff/streams.py - Abstract diff streaming comparison
#
# This file is part of the absdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Lock-step streaming comparison of files and byte streams.
"""
from typing import BinaryIO, Callable, Optional, Tuple
import logging
import os

from absdiff import (
    ABSDIFF_SUBSYSTEM_DIFF,
    AbsdiffKindError,
    AbsdiffStreamError,
    AbsdiffSystemError,
    size_fmt,
)

from .buffers import diff_buffer
from .difftypes import DiffKind
from .filetypes import is_regular_file, type_desc
from .options import DEFAULT_CHUNK_SIZE, DiffOptions
from .result import Diff

_log = logging.getLogger(__name__)

_log_debug = _log.debug


def _log_debug_diff(msg, *args, **kwargs):
    """A wrapper for diff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": ABSDIFF_SUBSYSTEM_DIFF}, **kwargs)


#: A callable counting the matching units of two equal length chunks
ChunkComparator = Callable[[bytes, bytes], int]


def no_checkpoint():
    """Default checkpoint: never cancels."""


def read_chunk(fobj: BinaryIO, size: int) -> bytes:
    """
    Read up to ``size`` bytes from ``fobj``, retrying short reads until
    either ``size`` bytes are available or end of file is reached.

    :param fobj: The binary stream to read.
    :type fobj: ``BinaryIO``
    :param size: The number of bytes wanted.
    :type size: ``int``
    :returns: The data read: shorter than ``size`` only at end of file.
    :rtype: ``bytes``
    """
    data = fobj.read(size)
    if len(data) == size or not data:
        return data
    parts = [data]
    remaining = size - len(data)
    while remaining:
        more = fobj.read(remaining)
        if not more:
            break
        parts.append(more)
        remaining -= len(more)
    return b"".join(parts)


# pylint: disable=too-many-arguments
def compare_streams(
    left_fobj: BinaryIO,
    right_fobj: BinaryIO,
    compare: ChunkComparator = diff_buffer,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    length: Optional[int] = None,
    checkpoint: Callable[[], None] = no_checkpoint,
    names: Tuple[str, str] = ("left", "right"),
) -> Tuple[int, int]:
    """
    Read two streams in lock-step fixed size chunks and accumulate the
    matching unit count returned by ``compare`` for each chunk pair.

    If ``length`` is ``None`` both streams are read to end of file, otherwise
    exactly ``length`` bytes are read from each.

    :param left_fobj: The left binary stream.
    :type left_fobj: ``BinaryIO``
    :param right_fobj: The right binary stream.
    :type right_fobj: ``BinaryIO``
    :param compare: The chunk comparator.
    :type compare: ``ChunkComparator``
    :param chunk_size: Bytes to read from each side per iteration.
    :type chunk_size: ``int``
    :param length: The number of bytes to compare, or ``None``.
    :type length: ``Optional[int]``
    :param checkpoint: Called before each chunk; raises to cancel.
    :type checkpoint: ``Callable[[], None]``
    :param names: Names of the two streams for error messages.
    :type names: ``Tuple[str, str]``
    :returns: A tuple of (total matching units, total bytes read per side).
    :rtype: ``Tuple[int, int]``
    :raises: ``AbsdiffStreamError`` if the streams fall out of step or end
             before ``length`` bytes.
    """
    total_matches = 0
    total_bytes = 0
    while True:
        checkpoint()
        want = chunk_size if length is None else min(chunk_size, length - total_bytes)
        if want <= 0:
            break
        left_chunk = read_chunk(left_fobj, want)
        right_chunk = read_chunk(right_fobj, want)
        if len(left_chunk) != len(right_chunk):
            raise AbsdiffStreamError(
                f"Stream length mismatch at offset {total_bytes}: "
                f"{names[0]} returned {len(left_chunk)} bytes, "
                f"{names[1]} returned {len(right_chunk)} bytes"
            )
        if not left_chunk:
            if length is not None:
                raise AbsdiffStreamError(
                    f"Unexpected end of data at offset {total_bytes} of {length} "
                    f"reading {names[0]} and {names[1]}"
                )
            break
        total_matches += compare(left_chunk, right_chunk)
        total_bytes += len(left_chunk)
    return total_matches, total_bytes


class FileComparator:
    """
    Streaming byte-level comparator for pairs of regular files.
    """

    kind = DiffKind.FILE

    def __init__(self, options: Optional[DiffOptions] = None):
        """
        Initialise a new ``FileComparator``.

        :param options: Options controlling the comparison.
        :type options: ``Optional[DiffOptions]``
        """
        self.options: DiffOptions = options or DiffOptions()

    def _check_kinds(self, left: str, right: str):
        """
        Verify that both ``left`` and ``right`` are regular files.

        :raises: ``AbsdiffKindError`` if either path is not a regular file.
        """
        left_reg = is_regular_file(left)
        right_reg = is_regular_file(right)
        if left_reg and right_reg:
            return
        if not left_reg and not right_reg:
            msg = "Left and right are not files"
        elif not left_reg:
            msg = "Left is not a file"
        else:
            msg = "Right is not a file"
        raise AbsdiffKindError(
            f"{msg}: {left} is a {type_desc(left)}, {right} is a {type_desc(right)}"
        )

    def compare(
        self, left: str, right: str, checkpoint: Callable[[], None] = no_checkpoint
    ) -> Diff:
        """
        Compare the regular files ``left`` and ``right`` byte by byte.

        Files of different size are reported as a mismatch without reading
        their content.

        :param left: The left file path.
        :type left: ``str``
        :param right: The right file path.
        :type right: ``str``
        :param checkpoint: Called at each chunk boundary; raises to cancel.
        :type checkpoint: ``Callable[[], None]``
        :returns: The comparison result.
        :rtype: ``Diff``
        """
        self._check_kinds(left, right)
        d = Diff(left, right, self.kind)

        try:
            left_size = os.path.getsize(left)
            right_size = os.path.getsize(right)
        except OSError as err:
            raise AbsdiffSystemError(
                f"Could not stat {left} or {right}: {err}"
            ) from err

        if left_size != right_size:
            _log_debug_diff(
                "File sizes differ for %s vs %s (%s vs %s)",
                left,
                right,
                size_fmt(left_size),
                size_fmt(right_size),
            )
            d.set_mismatch(f"file sizes differ: {left_size} vs {right_size}")
            return d

        _log_debug_diff(
            "Comparing %s vs %s (%s) in %d byte chunks",
            left,
            right,
            size_fmt(left_size),
            self.options.chunk_size,
        )
        try:
            with open(left, "rb") as left_fobj, open(right, "rb") as right_fobj:
                total_matches, total_bytes = compare_streams(
                    left_fobj,
                    right_fobj,
                    chunk_size=self.options.chunk_size,
                    checkpoint=checkpoint,
                    names=(left, right),
                )
        except OSError as err:
            raise AbsdiffSystemError(f"Error reading {left} or {right}: {err}") from err

        if total_bytes != left_size:
            raise AbsdiffStreamError(
                f"Read {total_bytes} bytes from {left} and {right} "
                f"but expected {left_size}"
            )

        d.set_unit_result(total_matches, left_size, "bytes")
        return d
