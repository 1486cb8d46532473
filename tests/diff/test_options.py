# Copyright Red Hat
#
# tests/diff/test_options.py - DiffOptions tests.
#
# This file is part of the absdiff project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
from argparse import Namespace
from dataclasses import FrozenInstanceError

from absdiff.diff.options import DEFAULT_CHUNK_SIZE, DiffOptions


class TestDiffOptions(unittest.TestCase):
    def test_defaults(self):
        opts = DiffOptions()
        self.assertEqual(opts.chunk_size, DEFAULT_CHUNK_SIZE)
        self.assertEqual(opts.chunk_size, 256 * 1024)
        self.assertEqual(opts.tolerance, 1e-16)
        self.assertTrue(opts.follow_symlinks)
        self.assertFalse(opts.keep_going)
        self.assertEqual(opts.jobs, 1)
        self.assertFalse(opts.use_magic_file_type)

    def test_DiffOptions__str__(self):
        opts = DiffOptions(keep_going=True, jobs=4)
        s = str(opts)
        self.assertIn("keep_going=True", s)
        self.assertIn("jobs=4", s)
        self.assertIn("chunk_size=262144", s)

    def test_frozen(self):
        opts = DiffOptions()
        with self.assertRaises(FrozenInstanceError):
            opts.jobs = 2

    def test_invalid_values(self):
        with self.assertRaises(ValueError):
            DiffOptions(chunk_size=0)
        with self.assertRaises(ValueError):
            DiffOptions(tolerance=-1.0)
        with self.assertRaises(ValueError):
            DiffOptions(jobs=0)

    def test_from_cmd_args(self):
        """Test initialization from argparse Namespace."""
        args = Namespace(
            keep_going=True,
            chunk_size=4096,
            jobs=None,
            unknown_arg="ignored",
        )
        opts = DiffOptions.from_cmd_args(args)

        self.assertTrue(opts.keep_going)
        self.assertEqual(opts.chunk_size, 4096)
        # Should use defaults for missing or unset args
        self.assertEqual(opts.jobs, 1)
        self.assertTrue(opts.follow_symlinks)
