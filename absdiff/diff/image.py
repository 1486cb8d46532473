# Copyright Red Hat
#
# absdiff/diff/image.py - Abstract diff typed image comparison
#
# This file is part of the absdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Typed comparison of NIfTI images.

Image headers are parsed with ``nibabel``; the voxel payload following the
header is streamed (decompressing ``.nii.gz`` files on the fly) and
compared element by element using the typed buffer comparator selected by
the header ``datatype`` code.
"""
from typing import Callable, NamedTuple, Optional, Tuple
from gzip import BadGzipFile
from functools import partial
import logging
import zlib

import nibabel
from nibabel.filebasedimages import ImageFileError
from nibabel.openers import ImageOpener
from nibabel.spatialimages import HeaderDataError

from absdiff import (
    ABSDIFF_SUBSYSTEM_IMAGE,
    AbsdiffFormatError,
    AbsdiffKindError,
    AbsdiffSystemError,
)

from .buffers import datatype_name, get_typed_comparator
from .difftypes import DiffKind
from .filetypes import FileTypeDetector, is_compressed_name, is_regular_file, type_desc
from .options import DiffOptions
from .result import Diff
from .streams import no_checkpoint, compare_streams

_log = logging.getLogger(__name__)

_log_debug = _log.debug


def _log_debug_image(msg, *args, **kwargs):
    """A wrapper for image subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": ABSDIFF_SUBSYSTEM_IMAGE}, **kwargs)


#: Errors raised by nibabel and the decompressor for malformed images
_FORMAT_ERRORS = (
    ImageFileError,
    HeaderDataError,
    BadGzipFile,
    EOFError,
    zlib.error,
    ValueError,
)

#: Errors raised by the decompressor while streaming a payload
_PAYLOAD_ERRORS = (BadGzipFile, EOFError, zlib.error)


class ImageHeader(NamedTuple):
    """
    The header fields needed to compare an image payload.
    """

    #: The header dimension vector: ``dim[0]`` is the number of dimensions
    dim: Tuple[int, ...]
    #: The element type code
    datatype: int
    #: Byte offset of the payload from the start of the (decompressed) file
    vox_offset: int
    #: Payload byte order: "<" or ">"
    byteorder: str

    @property
    def shape(self) -> Tuple[int, ...]:
        """
        The image shape: the ``dim[0]`` entries following the rank.

        :returns: The image shape.
        :rtype: ``Tuple[int, ...]``
        """
        ndim = max(0, min(self.dim[0], len(self.dim) - 1))
        return tuple(self.dim[1 : ndim + 1])

    @property
    def n_elements(self) -> int:
        """
        The number of elements in the payload. Non-positive dimensions
        count as 1.

        :returns: The element count.
        :rtype: ``int``
        """
        count = 1
        for size in self.shape:
            count *= size if size > 0 else 1
        return count


def read_header(path: str) -> ImageHeader:
    """
    Parse the image header of ``path``.

    :param path: The image file path.
    :type path: ``str``
    :returns: The header fields needed for comparison.
    :rtype: ``ImageHeader``
    :raises: ``AbsdiffFormatError`` if ``path`` is not a valid image.
    """
    try:
        image = nibabel.load(path)
        header = image.header
        dim = tuple(int(size) for size in header["dim"])
        datatype = int(header["datatype"])
        # The loaded header has vox_offset reset to 0: the file offset of
        # the payload is kept by the array proxy.
        vox_offset = int(image.dataobj.offset)
        byteorder = header.endianness
    except KeyError as err:
        raise AbsdiffFormatError(
            f"{path} is not a valid image: header has no field {err}"
        ) from err
    except _FORMAT_ERRORS as err:
        raise AbsdiffFormatError(f"{path} is not a valid image: {err}") from err
    except OSError as err:
        raise AbsdiffSystemError(f"Error reading image header {path}: {err}") from err
    _log_debug_image(
        "Read header for %s: dim=%s datatype=%d vox_offset=%d byteorder=%s",
        path,
        dim,
        datatype,
        vox_offset,
        byteorder,
    )
    return ImageHeader(dim, datatype, vox_offset, byteorder)


class ImageComparator:
    """
    Typed element-wise comparator for pairs of NIfTI images.
    """

    kind = DiffKind.IMAGE

    def __init__(
        self,
        options: Optional[DiffOptions] = None,
        detector: Optional[FileTypeDetector] = None,
    ):
        """
        Initialise a new ``ImageComparator``.

        :param options: Options controlling the comparison.
        :type options: ``Optional[DiffOptions]``
        :param detector: File type detector used to verify compression.
        :type detector: ``Optional[FileTypeDetector]``
        """
        self.options: DiffOptions = options or DiffOptions()
        self.detector: FileTypeDetector = detector or FileTypeDetector(
            use_magic=self.options.use_magic_file_type
        )

    def _check_files(self, left: str, right: str):
        """
        Verify that both sides are regular files whose content agrees with
        the compression implied by their names.
        """
        for path in (left, right):
            if not is_regular_file(path):
                raise AbsdiffKindError(
                    f"Image comparison needs two files: {left} is a "
                    f"{type_desc(left)}, {right} is a {type_desc(right)}"
                )
            compressed = self.detector.is_compressed(path)
            if compressed is not None and compressed != is_compressed_name(path):
                raise AbsdiffFormatError(
                    f"{path} is not a valid image: content is "
                    f"{'' if compressed else 'not '}gzip compressed"
                )

    def _mismatched_headers(self, d: Diff, left: ImageHeader, right: ImageHeader):
        """
        Record a shape or type mismatch between headers ``left`` and
        ``right`` in ``d``.

        :returns: ``True`` if the headers are incompatible.
        :rtype: ``bool``
        """
        if left.shape != right.shape:
            d.set_mismatch(f"shapes differ: {left.shape} vs {right.shape}")
            return True
        if left.datatype != right.datatype:
            d.set_mismatch(
                "Shapes match, types diverge: "
                f"{datatype_name(left.datatype)} ({left.datatype}) vs "
                f"{datatype_name(right.datatype)} ({right.datatype})"
            )
            return True
        return False

    def compare(
        self, left: str, right: str, checkpoint: Callable[[], None] = no_checkpoint
    ) -> Diff:
        """
        Compare the images ``left`` and ``right`` element by element.

        Images of different shape or element type are reported as a
        mismatch without reading their payload.

        :param left: The left image path.
        :type left: ``str``
        :param right: The right image path.
        :type right: ``str``
        :param checkpoint: Called at each chunk boundary; raises to cancel.
        :type checkpoint: ``Callable[[], None]``
        :returns: The comparison result.
        :rtype: ``Diff``
        """
        self._check_files(left, right)
        d = Diff(left, right, self.kind)

        left_hdr = read_header(left)
        right_hdr = read_header(right)
        if self._mismatched_headers(d, left_hdr, right_hdr):
            _log_debug_image("Header mismatch %s", d.report)
            return d

        typed = get_typed_comparator(left_hdr.datatype)
        n_elements = left_hdr.n_elements
        itemsize = typed.itemsize
        chunk_size = self.options.chunk_size
        chunk_size = max(itemsize, chunk_size - chunk_size % itemsize)

        _log_debug_image(
            "Comparing %d %s elements of %s vs %s",
            n_elements,
            typed.name,
            left,
            right,
        )

        compare = partial(
            typed.compare,
            left_order=left_hdr.byteorder,
            right_order=right_hdr.byteorder,
            tolerance=self.options.tolerance,
        )

        try:
            with ImageOpener(left, "rb") as left_fobj, ImageOpener(
                right, "rb"
            ) as right_fobj:
                left_fobj.seek(left_hdr.vox_offset)
                right_fobj.seek(right_hdr.vox_offset)
                total_matches, _ = compare_streams(
                    left_fobj,
                    right_fobj,
                    compare=compare,
                    chunk_size=chunk_size,
                    length=n_elements * itemsize,
                    checkpoint=checkpoint,
                    names=(left, right),
                )
        except _PAYLOAD_ERRORS as err:
            raise AbsdiffFormatError(
                f"Error decoding image payload of {left} or {right}: {err}"
            ) from err
        except OSError as err:
            raise AbsdiffSystemError(f"Error reading {left} or {right}: {err}") from err

        d.set_unit_result(total_matches, n_elements, "elements")
        return d

