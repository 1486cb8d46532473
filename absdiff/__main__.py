# Copyright Red Hat
#
# absdiff/__main__.py - Abstract diff module entry point
#
# This file is part of the absdiff project.
#
# SPDX-License-Identifier: Apache-2.0
from absdiff.command import run

run()
