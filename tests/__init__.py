# Copyright Red Hat
#
# tests/__init__.py - Abstract diff test package
#
# This file is part of the absdiff project.
#
# SPDX-License-Identifier: Apache-2.0
import logging

log = logging.getLogger()
log.setLevel(logging.DEBUG)
formatter = logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s')
file_handler = logging.FileHandler("test.log")
file_handler.setFormatter(formatter)
console_handler = logging.StreamHandler()
console_handler.setFormatter(formatter)
log.addHandler(file_handler)
log.addHandler(console_handler)


class MockArgs(object):
    debug = False
    debug_log = None
    verbose = 0
    version = False
    keep_going = False
    jobs = None
    chunk_size = None
    follow_symlinks = True
    use_magic_file_type = False
    left = None
    right = None
