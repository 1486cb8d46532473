# Copyright Red Hat
#
# absdiff/command.py - Abstract diff command interface
#
# This file is part of the absdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""The ``absdiff.command`` module provides the absdiff command line
interface, and a simple procedural interface to the ``absdiff.diff``
library modules.
"""
from argparse import ArgumentParser
from os.path import basename
import logging
import sys

from absdiff import (
    ABSDIFF_DEBUG_ALL,
    ABSDIFF_DEBUG_COMMAND,
    ABSDIFF_DEBUG_DIFF,
    ABSDIFF_DEBUG_IMAGE,
    ABSDIFF_SUBSYSTEM_COMMAND,
    AbsdiffError,
    SubsystemFilter,
    set_debug_mask,
    __version__,
)
from absdiff.diff import Diff, DiffEngine, DiffOptions

_log = logging.getLogger(__name__)

_log_info = _log.info
_log_error = _log.error


def _log_debug_command(msg, *args, **kwargs):
    """A wrapper for command subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": ABSDIFF_SUBSYSTEM_COMMAND}, **kwargs)


_DEFAULT_LOG_LEVEL = logging.WARNING

#: Exit status: the compared objects match
EXIT_MATCH = 0
#: Exit status: the compared objects differ
EXIT_MISMATCH = 1
#: Exit status: the comparison could not be completed
EXIT_ERROR = 2


def print_diff(diff: Diff, debug: bool = False):
    """
    Print the report for ``diff`` if it does not match. If ``debug`` is
    ``True`` the full result record is printed whether or not it matches.

    :param diff: The comparison result to print.
    :type diff: ``Diff``
    :param debug: Also print the full result record.
    :type debug: ``bool``
    """
    if not diff.matches:
        print(diff.report)
    if debug:
        print(diff)


def diff_paths(cmd_args) -> int:
    """
    Compare the paths given in ``cmd_args`` and print the result.

    :param cmd_args: The parsed command line arguments.
    :type cmd_args: ``argparse.Namespace``
    :returns: ``EXIT_MATCH`` or ``EXIT_MISMATCH``.
    :rtype: ``int``
    """
    options = DiffOptions.from_cmd_args(cmd_args)
    engine = DiffEngine(options)
    _log_debug_command("Comparing %s vs %s", cmd_args.left, cmd_args.right)
    try:
        diff = engine.differ(cmd_args.left, cmd_args.right)
    except KeyboardInterrupt:
        engine.cancel()
        raise
    print_diff(diff, debug=cmd_args.debug)
    return EXIT_MATCH if diff.matches else EXIT_MISMATCH


def setup_logging(cmd_args):
    """
    Set up absdiff logging.
    """
    level = _DEFAULT_LOG_LEVEL
    if cmd_args.verbose and cmd_args.verbose > 1:
        level = logging.DEBUG
    elif cmd_args.verbose and cmd_args.verbose > 0:
        level = logging.INFO

    absdiff_log = logging.getLogger("absdiff")
    formatter = logging.Formatter("%(levelname)s - %(message)s")
    absdiff_log.setLevel(level)
    if absdiff_log.hasHandlers():
        absdiff_log.handlers.clear()

    # Main console handler with subsystem debug filtering
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(SubsystemFilter("absdiff"))

    absdiff_log.addHandler(console_handler)


def shutdown_logging():
    """
    Shut down absdiff logging.
    """
    logging.shutdown()


def set_debug(debug_arg):
    """
    Set debugging mask from command line argument.
    """
    if not debug_arg:
        return

    mask_map = {
        "command": ABSDIFF_DEBUG_COMMAND,
        "diff": ABSDIFF_DEBUG_DIFF,
        "image": ABSDIFF_DEBUG_IMAGE,
        "all": ABSDIFF_DEBUG_ALL,
    }

    mask = 0
    for name in debug_arg.split(","):
        if name not in mask_map:
            raise ValueError(f"Unknown debug option: {name}")
        mask |= mask_map[name]
    set_debug_mask(mask)


def _add_diff_args(parser):
    """
    Add comparison option arguments.
    """
    parser.add_argument(
        "-k",
        "--keep-going",
        action="store_true",
        help="Record errors for individual directory entries and continue",
    )
    parser.add_argument(
        "-j",
        "--jobs",
        metavar="JOBS",
        type=int,
        help="Compare top-level directory entries using JOBS workers",
    )
    parser.add_argument(
        "--chunk-size",
        metavar="BYTES",
        type=int,
        help="Read files in chunks of BYTES bytes",
    )
    parser.add_argument(
        "--no-follow-symlinks",
        dest="follow_symlinks",
        action="store_false",
        help="Compare symbolic links by target instead of following them",
    )
    parser.add_argument(
        "--magic",
        dest="use_magic_file_type",
        action="store_true",
        help="Verify image file compression using libmagic",
    )


def main(args):
    """
    Main entry point for absdiff.
    """
    parser = ArgumentParser(
        description="Compare files, directories and NIfTI images",
        prog=basename(args[0]),
    )

    # Global arguments
    parser.add_argument(
        "-D",
        "--debug-log",
        metavar="DEBUGOPTS",
        type=str,
        help="A list of debug options to enable",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print the full comparison record after the report",
    )
    parser.add_argument("-v", "--verbose", help="Enable verbose output", action="count")
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        help="Report the version number of absdiff",
        version=__version__,
    )
    _add_diff_args(parser)
    parser.add_argument("left", metavar="LEFT", type=str, help="The left path")
    parser.add_argument("right", metavar="RIGHT", type=str, help="The right path")

    # argparse exits with status 2 (EXIT_ERROR) on usage errors
    cmd_args = parser.parse_args(args[1:])

    status = EXIT_ERROR

    try:
        set_debug(cmd_args.debug_log)
    except ValueError as err:
        print(err)
        parser.print_help()
        return status

    setup_logging(cmd_args)

    _log_debug_command("Parsed %s", " ".join(args[1:]))

    try:
        status = diff_paths(cmd_args)
    except KeyboardInterrupt:  # pragma: no cover
        _log_info("Exiting on user cancel")
    except (AbsdiffError, ValueError) as err:
        _log_error("%s", err)

    shutdown_logging()
    return status


def run():
    """
    Console script entry point.
    """
    sys.exit(main(sys.argv))


# vim: set et ts=4 sw=4 :
