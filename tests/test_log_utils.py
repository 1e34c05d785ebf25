# test_log_utils.py -- Tests for logging utilities
# Copyright (C) 2026 The git-backport Authors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# git-backport is dual-licensed under the Apache License, Version 2.0 and the
# GNU General Public License as published by the Free Software Foundation;
# version 2.0 or (at your option) any later version. You can redistribute it
# and/or modify it under the terms of either of these two licenses.
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# You should have received a copy of the licenses; if not, see
# <http://www.gnu.org/licenses/> for a copy of the GNU General Public License
# and <http://www.apache.org/licenses/LICENSE-2.0> for a copy of the Apache
# License, Version 2.0.
#

"""Tests for git_backport.log_utils."""

import logging
import os

from git_backport.log_utils import (
    _NULL_HANDLER,
    _PACKAGE_LOGGER,
    _get_trace_target,
    default_logging_config,
    getLogger,
    remove_null_handler,
)

from . import TestCase


class LogUtilsTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.original_handlers = list(_PACKAGE_LOGGER.handlers)
        root_logger = logging.getLogger()
        self.original_root_handlers = list(root_logger.handlers)
        self.original_root_level = root_logger.level
        self.overrideEnv("GIT_TRACE", None)

    def tearDown(self) -> None:
        _PACKAGE_LOGGER.handlers = self.original_handlers
        root_logger = logging.getLogger()
        root_logger.handlers = self.original_root_handlers
        root_logger.setLevel(self.original_root_level)
        super().tearDown()

    def test_get_logger(self) -> None:
        logger = getLogger("git_backport.test")
        self.assertIsInstance(logger, logging.Logger)
        self.assertEqual("git_backport.test", logger.name)

    def test_null_handler_installed(self) -> None:
        self.assertIn(_NULL_HANDLER, _PACKAGE_LOGGER.handlers)

    def test_remove_null_handler(self) -> None:
        remove_null_handler()
        self.assertNotIn(_NULL_HANDLER, _PACKAGE_LOGGER.handlers)

    def test_default_logging_config(self) -> None:
        logging.getLogger().handlers = []
        default_logging_config()
        self.assertNotIn(_NULL_HANDLER, _PACKAGE_LOGGER.handlers)
        root_logger = logging.getLogger()
        self.assertTrue(root_logger.handlers)
        self.assertEqual(logging.INFO, root_logger.level)

    def test_default_logging_config_verbose(self) -> None:
        logging.getLogger().handlers = []
        default_logging_config(verbose=True)
        self.assertEqual(logging.DEBUG, logging.getLogger().level)

    def test_trace_file(self) -> None:
        path = os.path.join(self.make_temp_dir(), "trace.log")
        self.overrideEnv("GIT_TRACE", path)
        logging.getLogger().handlers = []
        default_logging_config()
        getLogger("git_backport.test").debug("traced message")
        for handler in logging.getLogger().handlers:
            handler.flush()
            handler.close()
        with open(path) as f:
            self.assertIn("traced message", f.read())

    def test_trace_target(self) -> None:
        cases = [
            (None, None),
            ("", None),
            ("0", None),
            ("false", None),
            ("1", 2),
            ("true", 2),
            ("2", 2),
            ("5", 5),
            ("10", None),
            ("relative/path", None),
        ]
        for value, expected in cases:
            self.overrideEnv("GIT_TRACE", value)
            self.assertEqual(expected, _get_trace_target(), value)
        absolute = os.path.abspath("trace.log")
        self.overrideEnv("GIT_TRACE", absolute)
        self.assertEqual(absolute, _get_trace_target())
