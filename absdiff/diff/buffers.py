# Copyright Red Hat
#
# absdiff/diff/buffers.py - Abstract diff buffer comparators
#
# This file is part of the absdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Buffer comparison support.

Buffer comparators count the positions at which two equal length buffers
agree. Raw buffers are compared byte by byte; typed buffers are first
decoded as a fixed width numeric type. The comparators keep no state and
may be called concurrently.
"""
from typing import Dict, NamedTuple
import numpy as np

from absdiff import AbsdiffUnsupportedTypeError

from .options import DEFAULT_TOLERANCE


def _check_lengths(left: bytes, right: bytes, itemsize: int = 1):
    """
    Verify that ``left`` and ``right`` are the same length and hold a whole
    number of ``itemsize`` elements.

    :raises: ``ValueError`` if the buffers cannot be compared.
    """
    if len(left) != len(right):
        raise ValueError(
            "Buffers must have the same length: "
            f"left is size {len(left)} and right is size {len(right)}"
        )
    if len(left) % itemsize:
        raise ValueError(
            f"Buffer size {len(left)} is not a multiple of element size {itemsize}"
        )


def diff_buffer(left: bytes, right: bytes) -> int:
    """
    Calculate how many bytes match between two buffers.

    :param left: The left buffer.
    :type left: ``bytes``
    :param right: The right buffer: must be the same length as ``left``.
    :type right: ``bytes``
    :returns: The number of positions holding equal bytes.
    :rtype: ``int``
    :raises: ``ValueError`` if the buffer lengths differ.
    """
    _check_lengths(left, right)
    return int(
        np.count_nonzero(
            np.frombuffer(left, dtype=np.uint8) == np.frombuffer(right, dtype=np.uint8)
        )
    )


def diff_exact_buffer(left: bytes, right: bytes, dtype: np.dtype) -> int:
    """
    Calculate how many integer elements of type ``dtype`` match between two
    buffers.

    :param left: The left buffer.
    :type left: ``bytes``
    :param right: The right buffer.
    :type right: ``bytes``
    :param dtype: The element type, including byte order.
    :type dtype: ``numpy.dtype``
    :returns: The number of equal elements.
    :rtype: ``int``
    """
    dtype = np.dtype(dtype)
    _check_lengths(left, right, dtype.itemsize)
    return int(
        np.count_nonzero(
            np.frombuffer(left, dtype=dtype) == np.frombuffer(right, dtype=dtype)
        )
    )


def diff_float_buffer(
    left: bytes,
    right: bytes,
    dtype: np.dtype,
    tolerance: float = DEFAULT_TOLERANCE,
) -> int:
    """
    Calculate how many floating point elements of type ``dtype`` match
    between two buffers.

    Two elements match if their absolute difference is below ``tolerance``.
    Equal values (including equal infinities) and pairs of NaN values also
    match, so that a buffer always matches itself.

    :param left: The left buffer.
    :type left: ``bytes``
    :param right: The right buffer.
    :type right: ``bytes``
    :param dtype: The element type, including byte order.
    :type dtype: ``numpy.dtype``
    :param tolerance: Absolute difference below which values are equal.
    :type tolerance: ``float``
    :returns: The number of matching elements.
    :rtype: ``int``
    """
    dtype = np.dtype(dtype)
    _check_lengths(left, right, dtype.itemsize)
    a = np.frombuffer(left, dtype=dtype)
    b = np.frombuffer(right, dtype=dtype)
    with np.errstate(invalid="ignore", over="ignore"):
        same = (a == b) | (np.abs(a - b) < tolerance) | (np.isnan(a) & np.isnan(b))
    return int(np.count_nonzero(same))


class TypedComparator(NamedTuple):
    """
    A typed buffer comparator for one image element type code.
    """

    #: The image header ``datatype`` code
    code: int
    #: Human readable element type name
    name: str
    #: Element type without byte order (numpy type string)
    type_str: str
    #: Compare using the float tolerance rule
    is_float: bool

    @property
    def itemsize(self) -> int:
        """
        The size of one element in bytes.

        :returns: The element size.
        :rtype: ``int``
        """
        return np.dtype(self.type_str).itemsize

    def dtype(self, byteorder: str = "<") -> np.dtype:
        """
        Return the numpy dtype for this element type in byte order
        ``byteorder``.

        :param byteorder: "<" for little-endian or ">" for big-endian.
        :type byteorder: ``str``
        :returns: The element dtype.
        :rtype: ``numpy.dtype``
        """
        return np.dtype(byteorder + self.type_str)

    def compare(
        self,
        left: bytes,
        right: bytes,
        left_order: str = "<",
        right_order: str = "<",
        tolerance: float = DEFAULT_TOLERANCE,
    ) -> int:
        """
        Count the matching elements of two buffers of this element type.

        The two sides may use different byte orders: right hand data is
        converted to the left hand byte order before comparison.

        :param left: The left buffer.
        :type left: ``bytes``
        :param right: The right buffer.
        :type right: ``bytes``
        :param left_order: Byte order of ``left``.
        :type left_order: ``str``
        :param right_order: Byte order of ``right``.
        :type right_order: ``str``
        :param tolerance: Float comparison tolerance.
        :type tolerance: ``float``
        :returns: The number of matching elements.
        :rtype: ``int``
        """
        dtype = self.dtype(left_order)
        if right_order != left_order:
            _check_lengths(left, right, self.itemsize)
            right = (
                np.frombuffer(right, dtype=self.dtype(right_order))
                .astype(dtype)
                .tobytes()
            )
        if self.is_float:
            return diff_float_buffer(left, right, dtype, tolerance=tolerance)
        return diff_exact_buffer(left, right, dtype)


# fmt: off
#: Image ``datatype`` codes with a typed comparator.
TYPED_COMPARATORS: Dict[int, TypedComparator] = {
    4: TypedComparator(4, "int16", "i2", False),
    8: TypedComparator(8, "int32", "i4", False),
    16: TypedComparator(16, "float32", "f4", True),
    64: TypedComparator(64, "float64", "f8", True),
    512: TypedComparator(512, "uint16", "u2", False),
    768: TypedComparator(768, "uint32", "u4", False),
    1024: TypedComparator(1024, "int64", "i8", False),
    1280: TypedComparator(1280, "uint64", "u8", False),
}
# fmt: on


def datatype_name(code: int) -> str:
    """
    Return a human readable name for image ``datatype`` code ``code``.

    :param code: The header ``datatype`` code.
    :type code: ``int``
    :returns: The element type name or "unknown".
    :rtype: ``str``
    """
    comparator = TYPED_COMPARATORS.get(code)
    return comparator.name if comparator else "unknown"


def get_typed_comparator(code: int) -> TypedComparator:
    """
    Return the typed comparator for image ``datatype`` code ``code``.

    :param code: The header ``datatype`` code.
    :type code: ``int``
    :returns: The matching comparator.
    :rtype: ``TypedComparator``
    :raises: ``AbsdiffUnsupportedTypeError`` if no comparator exists for
             ``code``.
    """
    try:
        return TYPED_COMPARATORS[code]
    except KeyError as err:
        raise AbsdiffUnsupportedTypeError(f"Unsupported data type: {code}") from err
