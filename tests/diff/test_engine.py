# Copyright Red Hat
#
# tests/diff/test_engine.py - Comparison dispatch tests.
#
# This file is part of the absdiff project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
from unittest.mock import patch
import tempfile
import os

import numpy as np

from absdiff import (
    AbsdiffCancelledError,
    AbsdiffKindError,
    AbsdiffNotFoundError,
    AbsdiffRecursionError,
)
from absdiff.diff import (
    Diff,
    DiffEngine,
    DiffKind,
    DiffOptions,
    SymlinkComparator,
    differ,
)

from ._util import write_file, write_nifti


class CancellingComparator:
    """A file comparator that cancels its engine on first use."""

    kind = DiffKind.FILE

    def __init__(self, engine):
        self.engine = engine
        self.calls = 0

    def compare(self, left, right, checkpoint):
        self.calls += 1
        self.engine.cancel()
        d = Diff(left, right, self.kind)
        d.set_match()
        return d


class TestDiffEngine(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp_dir.cleanup)

    def _path(self, *names):
        return os.path.join(self.tmp_dir.name, *names)

    def test_default_comparators(self):
        engine = DiffEngine()
        self.assertEqual(
            set(engine.comparators),
            {DiffKind.DIRECTORY, DiffKind.FILE, DiffKind.IMAGE, DiffKind.SYMLINK},
        )

    def test_dispatch_file(self):
        left = write_file(self._path("a.txt"), b"abc")
        right = write_file(self._path("b.txt"), b"abc")
        d = differ(left, right)
        self.assertEqual(d.kind, DiffKind.FILE)
        self.assertTrue(d.matches)

    def test_dispatch_image(self):
        data = np.arange(6, dtype="<i2").reshape((2, 3))
        left = write_nifti(self._path("a.nii"), data)
        right = write_nifti(self._path("b.nii.gz"), data)
        d = differ(left, right)
        self.assertEqual(d.kind, DiffKind.IMAGE)
        self.assertTrue(d.matches)

    def test_dispatch_image_name_one_side_only(self):
        data = np.arange(6, dtype="<i2").reshape((2, 3))
        left = write_nifti(self._path("a.nii"), data)
        right = write_nifti(self._path("b.dat"), data)
        d = differ(left, right)
        self.assertEqual(d.kind, DiffKind.FILE)
        self.assertTrue(d.matches)

    def test_left_not_found(self):
        right = write_file(self._path("b"), b"")
        with self.assertRaises(AbsdiffNotFoundError) as cm:
            differ(self._path("nosuch"), right)
        self.assertIn("Left path", str(cm.exception))
        self.assertIn("does not exist", str(cm.exception))

    def test_right_not_found(self):
        left = write_file(self._path("a"), b"")
        with self.assertRaises(AbsdiffNotFoundError) as cm:
            differ(left, self._path("nosuch"))
        self.assertIn("Right path", str(cm.exception))

    def test_both_not_found(self):
        with self.assertRaises(AbsdiffNotFoundError) as cm:
            differ(self._path("x"), self._path("y"))
        self.assertIn("do not exist", str(cm.exception))

    def test_not_found_not_absorbed_at_top_level(self):
        with self.assertRaises(AbsdiffNotFoundError):
            differ(self._path("x"), self._path("y"), DiffOptions(keep_going=True))

    def test_file_vs_directory(self):
        left = write_file(self._path("a"), b"")
        with self.assertRaises(AbsdiffKindError):
            differ(left, self.tmp_dir.name)

    def test_cancel_before_start(self):
        left = write_file(self._path("a"), b"abc")
        engine = DiffEngine()
        engine.cancel()
        self.assertTrue(engine.cancelled)
        with self.assertRaises(AbsdiffCancelledError):
            engine.differ(left, left)

    def test_cancel_between_entries(self):
        for name in ("a", "b", "c"):
            write_file(self._path("left", name), b"x")
            write_file(self._path("right", name), b"x")
        engine = DiffEngine(DiffOptions(keep_going=True))
        comparator = CancellingComparator(engine)
        engine.register(comparator)
        with self.assertRaises(AbsdiffCancelledError):
            engine.differ(self._path("left"), self._path("right"))
        self.assertEqual(comparator.calls, 1)

    def test_cancel_mid_stream(self):
        left = write_file(self._path("a"), b"x" * 1000)
        engine = DiffEngine(DiffOptions(chunk_size=10))
        calls = []
        original = engine.checkpoint

        def checkpoint():
            calls.append(1)
            if len(calls) == 5:
                engine.cancel()
            original()

        with patch.object(engine, "checkpoint", side_effect=checkpoint):
            with self.assertRaises(AbsdiffCancelledError):
                engine.differ(left, left)
        self.assertEqual(len(calls), 5)

    def test_directory_cycle(self):
        os.mkdir(self._path("left"))
        os.mkdir(self._path("right"))
        os.symlink(".", self._path("left", "loop"))
        os.symlink(".", self._path("right", "loop"))
        with self.assertRaises(AbsdiffRecursionError):
            differ(self._path("left"), self._path("right"))

    def test_directory_cycle_keep_going(self):
        os.mkdir(self._path("left"))
        os.mkdir(self._path("right"))
        os.symlink(".", self._path("left", "loop"))
        os.symlink(".", self._path("right", "loop"))
        d = differ(self._path("left"), self._path("right"), DiffOptions(keep_going=True))
        self.assertFalse(d.matches)
        self.assertEqual(d.common, ["loop"])
        self.assertTrue(d.sub_diffs[0].errored)

    def test_dangling_symlink_followed(self):
        os.symlink(self._path("nosuch"), self._path("link"))
        target = write_file(self._path("file"), b"")
        with self.assertRaises(AbsdiffNotFoundError):
            differ(self._path("link"), target)


class TestSymlinkComparator(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp_dir.cleanup)
        self.options = DiffOptions(follow_symlinks=False)

    def _path(self, *names):
        return os.path.join(self.tmp_dir.name, *names)

    def test_same_target(self):
        os.symlink("target", self._path("a"))
        os.symlink("target", self._path("b"))
        d = differ(self._path("a"), self._path("b"), self.options)
        self.assertEqual(d.kind, DiffKind.SYMLINK)
        self.assertTrue(d.matches)

    def test_different_target(self):
        os.symlink("one", self._path("a"))
        os.symlink("two", self._path("b"))
        d = differ(self._path("a"), self._path("b"), self.options)
        self.assertFalse(d.matches)
        self.assertEqual(d.additional_info, "symbolic link targets differ: one vs two")

    def test_link_vs_file(self):
        target = write_file(self._path("file"), b"")
        os.symlink(target, self._path("a"))
        with self.assertRaises(AbsdiffKindError):
            differ(self._path("a"), target, self.options)
        with self.assertRaises(AbsdiffKindError):
            SymlinkComparator().compare(target, self._path("a"))

    def test_links_not_traversed(self):
        os.mkdir(self._path("left"))
        os.mkdir(self._path("right"))
        os.symlink(".", self._path("left", "loop"))
        os.symlink(".", self._path("right", "loop"))
        d = differ(self._path("left"), self._path("right"), self.options)
        self.assertTrue(d.matches)
        self.assertEqual(d.sub_diffs[0].kind, DiffKind.SYMLINK)
