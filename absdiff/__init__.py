# Copyright Red Hat
#
# absdiff/__init__.py - Abstract diff package initialisation
#
# This file is part of the absdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Absdiff top-level package.
"""
from ._absdiff import *  # noqa: F401, F403
from ._absdiff import __all__  # noqa: F401

__version__ = "0.1.0"
