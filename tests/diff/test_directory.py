# Copyright Red Hat
#
# tests/diff/test_directory.py - Directory comparison tests.
#
# This file is part of the absdiff project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
import tempfile
import os

import numpy as np

from absdiff import AbsdiffKindError
from absdiff.diff.difftypes import DiffKind
from absdiff.diff.directory import (
    DirectoryComparator,
    list_entries,
    partition_entries,
)
from absdiff.diff.engine import DiffEngine, differ
from absdiff.diff.options import DiffOptions

from ._util import write_file, write_nifti


class TestPartitionEntries(unittest.TestCase):
    def test_partition(self):
        left_only, right_only, common = partition_entries(
            ["a", "b", "c", "e"], ["d", "c", "b", "f"]
        )
        self.assertEqual(left_only, ["a", "e"])
        self.assertEqual(right_only, ["d", "f"])
        self.assertEqual(common, ["b", "c"])

    def test_partition_disjoint_and_complete(self):
        left = ["x%d" % i for i in range(0, 300, 2)]
        right = ["x%d" % i for i in range(0, 300, 3)]
        left_only, right_only, common = partition_entries(left, right)
        self.assertEqual(set(left_only) | set(common), set(left))
        self.assertEqual(set(right_only) | set(common), set(right))
        self.assertFalse(set(left_only) & set(right_only))
        self.assertFalse(set(left_only) & set(common))
        self.assertFalse(set(right_only) & set(common))

    def test_partition_empty(self):
        self.assertEqual(partition_entries([], []), ([], [], []))


class TestDirectoryComparator(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp_dir.cleanup)
        self.left = os.path.join(self.tmp_dir.name, "left")
        self.right = os.path.join(self.tmp_dir.name, "right")
        os.mkdir(self.left)
        os.mkdir(self.right)

    def _write_both(self, name, content, right_content=None):
        write_file(os.path.join(self.left, name), content)
        write_file(
            os.path.join(self.right, name),
            content if right_content is None else right_content,
        )

    def test_list_entries_sorted(self):
        for name in ("c", "a", "b"):
            write_file(os.path.join(self.left, name), b"")
        self.assertEqual(list_entries(self.left), ["a", "b", "c"])

    def test_empty_directories(self):
        d = differ(self.left, self.right)
        self.assertEqual(d.kind, DiffKind.DIRECTORY)
        self.assertTrue(d.matches)
        self.assertEqual(d.sub_diffs, [])

    def test_identical_trees(self):
        self._write_both("a.txt", b"alpha")
        self._write_both("sub/b.bin", os.urandom(100))
        write_nifti(os.path.join(self.left, "sub/img.nii.gz"), np.ones((4, 4)), "<f4")
        write_nifti(os.path.join(self.right, "sub/img.nii.gz"), np.ones((4, 4)), "<f4")
        d = differ(self.left, self.right)
        self.assertTrue(d.matches)
        self.assertEqual(d.common, ["a.txt", "sub"])
        sub = d.sub_diffs[1]
        self.assertEqual(sub.kind, DiffKind.DIRECTORY)
        self.assertEqual(sub.common, ["b.bin", "img.nii.gz"])
        self.assertEqual(sub.sub_diffs[1].kind, DiffKind.IMAGE)
        # Directory results do not carry a similarity
        self.assertEqual(d.similarity, -1)

    def test_reflexive(self):
        self._write_both("a", b"1")
        self._write_both("d/e/f", b"2")
        self.assertTrue(differ(self.left, self.left).matches)

    def test_directory_scenario(self):
        write_file(os.path.join(self.left, "a"), b"a")
        self._write_both("b", b"same")
        self._write_both("c", b"abcd", b"abcX")
        write_file(os.path.join(self.right, "d"), b"d")

        d = differ(self.left, self.right)
        self.assertFalse(d.matches)
        self.assertEqual(d.left_only, ["a"])
        self.assertEqual(d.right_only, ["d"])
        self.assertEqual(d.common, ["b", "c"])
        self.assertEqual(len(d.sub_diffs), 2)
        self.assertTrue(d.sub_diffs[0].matches)
        self.assertFalse(d.sub_diffs[1].matches)

        lines = d.report.splitlines()
        self.assertIn(f"Directories {self.left} and {self.right} differ", lines[0])
        self.assertEqual(lines[1], f"Only in {self.left}: a")
        self.assertEqual(lines[2], f"Only in {self.right}: d")
        self.assertEqual(lines[3], d.sub_diffs[1].report)
        self.assertIn("3 of 4 bytes match", lines[3])

    def test_only_entries_without_content_differences(self):
        write_file(os.path.join(self.right, "new"), b"")
        d = differ(self.left, self.right)
        self.assertFalse(d.matches)
        self.assertEqual(d.right_only, ["new"])
        self.assertEqual(d.common, [])

    def test_report_includes_nested_mismatches_in_order(self):
        self._write_both("x/one", b"1", b"2")
        self._write_both("y/two", b"22", b"333")
        d = differ(self.left, self.right)
        self.assertFalse(d.matches)
        report = d.report
        self.assertLess(
            report.index(os.path.join(self.left, "x", "one")),
            report.index(os.path.join(self.left, "y", "two")),
        )
        self.assertIn("file sizes differ: 2 vs 3", report)

    def test_common_name_different_kinds(self):
        write_file(os.path.join(self.left, "x"), b"file")
        os.mkdir(os.path.join(self.right, "x"))
        with self.assertRaises(AbsdiffKindError):
            differ(self.left, self.right)

    def test_keep_going_records_error(self):
        write_file(os.path.join(self.left, "x"), b"file")
        os.mkdir(os.path.join(self.right, "x"))
        self._write_both("y", b"same")
        d = differ(self.left, self.right, DiffOptions(keep_going=True))
        self.assertFalse(d.matches)
        self.assertTrue(d.sub_diffs[0].errored)
        self.assertFalse(d.sub_diffs[0].matches)
        self.assertIn("error:", d.sub_diffs[0].report)
        self.assertTrue(d.sub_diffs[1].matches)
        self.assertIn(d.sub_diffs[0].report, d.report)

    def test_right_not_directory(self):
        right = write_file(os.path.join(self.tmp_dir.name, "file"), b"x")
        with self.assertRaises(AbsdiffKindError) as cm:
            differ(self.left, right)
        self.assertIn("directory", str(cm.exception))
        self.assertIn("file", str(cm.exception))

    def test_comparator_precondition(self):
        comparator = DirectoryComparator(DiffEngine())
        right = write_file(os.path.join(self.tmp_dir.name, "file"), b"x")
        with self.assertRaises(AbsdiffKindError):
            comparator.compare(self.left, right)

    def test_parallel_matches_sequential(self):
        for i in range(20):
            content = os.urandom(64)
            self._write_both(f"f{i:02d}", content, content if i % 3 else b"other")
            self._write_both(f"d{i:02d}/inner", b"inner")
        sequential = differ(self.left, self.right)
        parallel = differ(self.left, self.right, DiffOptions(jobs=4))
        self.assertEqual(parallel.common, sequential.common)
        self.assertEqual(
            [sub.left for sub in parallel.sub_diffs],
            [os.path.join(self.left, name) for name in parallel.common],
        )
        self.assertEqual(
            [sub.matches for sub in parallel.sub_diffs],
            [sub.matches for sub in sequential.sub_diffs],
        )
        self.assertEqual(parallel.report, sequential.report)
        self.assertFalse(parallel.matches)
