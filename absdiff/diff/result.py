# Copyright Red Hat
#
# absdiff/diff/result.py - Abstract diff result record
#
# This file is part of the absdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
The comparison result record shared by all comparators.
"""
from typing import Any, Dict, Iterator, List, Optional
import json

from .difftypes import DiffKind

#: Similarity value for results that have not run a byte or typed comparison
SIMILARITY_UNSET = -1.0


class Diff:
    """
    The outcome of comparing two file system objects.

    A ``Diff`` is created empty by the comparator that owns it, completed
    exactly once, and then handed to the caller: either for rendering or
    for inclusion in a parent directory result's ``sub_diffs``.
    """

    def __init__(self, left: str, right: str, kind: Optional[DiffKind] = None):
        """
        Initialise a new, default ``Diff`` object to be built on.

        :param left: The left path for the comparison.
        :type left: ``str``
        :param right: The right path for the comparison.
        :type right: ``str``
        :param kind: The kind of comparison that produced this result.
        :type kind: ``Optional[DiffKind]``
        """
        #: The left object for the diff
        self.left: str = left
        #: The right object for the diff
        self.right: str = right
        #: The kind of comparison that populated this result
        self.kind: Optional[DiffKind] = kind
        #: Whether the objects match
        self.matches: bool = False
        #: Entry names only present in the left directory
        self.left_only: List[str] = []
        #: Entry names only present in the right directory
        self.right_only: List[str] = []
        #: Entry names present in both directories
        self.common: List[str] = []
        #: Fraction of matching bytes or elements, or ``SIMILARITY_UNSET``
        self.similarity: float = SIMILARITY_UNSET
        #: Short explanation of a mismatch
        self.additional_info: str = ""
        #: Results for the common entries of a directory comparison
        self.sub_diffs: List["Diff"] = []
        #: Rendered multi-line mismatch report
        self.report: str = ""
        #: Error message if this entry could not be compared
        self.error: str = ""

    def __repr__(self) -> str:
        return (
            f"Diff(left={self.left!r}, right={self.right!r}, "
            f"kind={self.kind.value if self.kind else None}, "
            f"matches={self.matches})"
        )

    def __str__(self) -> str:
        """
        Return a string representation of this ``Diff`` object including
        all nested sub-diffs.

        :returns: A human readable representation of this ``Diff``.
        :rtype: ``str``
        """
        return self._format(0)

    def _format(self, depth: int) -> str:
        """
        Format this ``Diff`` indented for nesting level ``depth``.

        :param depth: The nesting level of this result.
        :type depth: ``int``
        :returns: The indented string representation.
        :rtype: ``str``
        """
        indent = 4 * depth * " "
        lines = [
            f"{indent}Diff: {self.left} vs {self.right}",
            f"{indent}  kind: {self.kind.value if self.kind else ''}",
            f"{indent}  matches: {self.matches}",
            f"{indent}  left_only: {', '.join(self.left_only)}",
            f"{indent}  right_only: {', '.join(self.right_only)}",
            f"{indent}  common: {', '.join(self.common)}",
            f"{indent}  similarity: {self.similarity}",
            f"{indent}  additional_info: {self.additional_info}",
        ]
        if self.error:
            lines.append(f"{indent}  error: {self.error}")
        if self.sub_diffs:
            lines.append(f"{indent}  sub_diffs:")
            lines.extend(sub._format(depth + 1) for sub in self.sub_diffs)
        return "\n".join(lines)

    @property
    def errored(self) -> bool:
        """
        True if this entry could not be compared.

        :returns: ``True`` if an error was recorded for this entry.
        :rtype: ``bool``
        """
        return bool(self.error)

    def mismatches(self) -> Iterator["Diff"]:
        """
        Iterate over every non-matching leaf result, depth first.

        Directory results that fail only because of their own left-only or
        right-only entries are yielded themselves.

        :returns: An iterator over mismatched ``Diff`` objects.
        :rtype: ``Iterator[Diff]``
        """
        if self.matches:
            return
        if self.left_only or self.right_only or not self.sub_diffs:
            yield self
        for sub in self.sub_diffs:
            yield from sub.mismatches()

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``Diff`` object into a dictionary representation
        suitable for encoding as JSON.

        :returns: A dictionary mapping this instance's keys to values.
        :rtype: ``Dict[str, Any]``
        """
        return {
            "left": self.left,
            "right": self.right,
            "kind": self.kind.value if self.kind else None,
            "matches": self.matches,
            "left_only": list(self.left_only),
            "right_only": list(self.right_only),
            "common": list(self.common),
            "similarity": self.similarity,
            "additional_info": self.additional_info,
            "sub_diffs": [sub.to_dict() for sub in self.sub_diffs],
            "report": self.report,
            "error": self.error,
        }

    def json(self, pretty=False) -> str:
        """
        Return a string representation of this ``Diff`` in JSON notation.

        :param pretty: Indent JSON to be human readable.
        :type pretty: ``bool``
        :returns: A JSON representation of this instance.
        :rtype: ``str``
        """
        return json.dumps(self.to_dict(), indent=4 if pretty else None)

    def set_unit_result(self, total_matches: int, total_units: int, unit: str):
        """
        Complete a byte-level or typed comparison result from its match
        counts.

        :param total_matches: The number of matching units.
        :type total_matches: ``int``
        :param total_units: The number of units compared.
        :type total_units: ``int``
        :param unit: Plural unit name used in the summary ("bytes").
        :type unit: ``str``
        """
        self.matches = total_matches == total_units
        # Two empty objects are identical.
        self.similarity = total_matches / total_units if total_units else 1.0
        if not self.matches:
            percentage = self.similarity * 100.0
            self.set_mismatch(
                f"{total_matches} of {total_units} {unit} match ({percentage:.1f}%)"
            )

    def set_mismatch(self, additional_info: str):
        """
        Mark this result as a mismatch with explanation ``additional_info``
        and render the single line report.

        :param additional_info: A short explanation of the mismatch.
        :type additional_info: ``str``
        """
        self.matches = False
        self.additional_info = additional_info
        self.report = f"{self.left} vs {self.right}: {additional_info}"

    def set_match(self):
        """
        Mark this result as a complete match.
        """
        self.matches = True
        self.additional_info = ""
        self.report = ""

    def set_error(self, err: Exception):
        """
        Record that this entry could not be compared because of ``err``.

        :param err: The exception raised by the comparator.
        :type err: ``Exception``
        """
        self.error = str(err)
        self.matches = False
        self.additional_info = f"error: {err}"
        self.report = f"{self.left} vs {self.right}: error: {err}"
