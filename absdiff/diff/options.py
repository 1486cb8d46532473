# Copyright Red Hat
#
# absdiff/diff/options.py - Abstract diff options
#
# This file is part of the absdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Abstract diff options.
"""
from dataclasses import dataclass, fields
from argparse import Namespace
import logging

_log = logging.getLogger(__name__)

_log_debug = _log.debug

#: Default lock-step read size in bytes (256KiB)
DEFAULT_CHUNK_SIZE = 2**18

#: Default absolute tolerance for floating point element comparison
DEFAULT_TOLERANCE = 1e-16


@dataclass(frozen=True)
class DiffOptions:
    """
    Abstract diff comparison options.
    """

    #: Number of bytes read from each side per lock-step iteration
    chunk_size: int = DEFAULT_CHUNK_SIZE
    #: Absolute tolerance for floating point element comparison
    tolerance: float = DEFAULT_TOLERANCE
    #: Resolve symbolic links instead of comparing link targets
    follow_symlinks: bool = True
    #: Record per-entry errors in directory comparisons instead of aborting
    keep_going: bool = False
    #: Number of workers used for sibling entries of the top-level directory
    jobs: int = 1
    #: Verify image compression by file content using magic
    use_magic_file_type: bool = False

    def __post_init__(self):
        """
        Validate option values.

        :raises: ``ValueError`` if any option value is out of range.
        """
        if self.chunk_size <= 0:
            raise ValueError(f"Invalid chunk size: {self.chunk_size}")
        if self.tolerance < 0:
            raise ValueError(f"Invalid tolerance: {self.tolerance}")
        if self.jobs < 1:
            raise ValueError(f"Invalid number of jobs: {self.jobs}")

    def __str__(self):
        """
        Return a human readable string representation of this
        ``DiffOptions`` instance.

        :returns: A human readable string.
        :rtype: ``str``
        """
        return "\n".join(f"{key}={val}" for key, val in self.__dict__.items())

    @classmethod
    def from_cmd_args(cls, cmd_args: Namespace) -> "DiffOptions":
        """
        Initialise DiffOptions from command line arguments.

        Construct a new ``DiffOptions`` object from the command line
        arguments in ``cmd_args``. Arguments that are absent or ``None``
        keep their default values.

        :param cmd_args: The command line selection arguments.
        :type cmd_args: ``Namespace``
        :returns: A new ``DiffOptions`` instance
        :rtype: ``DiffOptions``
        """
        field_names = {f.name for f in fields(cls)}
        kwargs = {
            name: getattr(cmd_args, name)
            for name in field_names
            if getattr(cmd_args, name, None) is not None
        }
        options = cls(**kwargs)
        _log_debug("Initialised DiffOptions from arguments: %s", repr(options))
        return options
