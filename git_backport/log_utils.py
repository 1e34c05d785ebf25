# log_utils.py -- Logging setup for git-backport
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

"""Logging utilities for git-backport.

git-backport is usable as a library, and library users may not want any
logging output; a null handler is installed on the package logger so nothing
is printed unless the application configures logging. The command-line
interface calls :func:`default_logging_config`, which honours ``GIT_TRACE``
the same way git does.

Modules only need :func:`getLogger`, which this module re-exports.
"""

__all__ = ["default_logging_config", "getLogger", "remove_null_handler"]

import logging
import os
import sys

getLogger = logging.getLogger

_NULL_HANDLER = logging.NullHandler()
_PACKAGE_LOGGER = getLogger("git_backport")
_PACKAGE_LOGGER.addHandler(_NULL_HANDLER)

_TRACE_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


def _get_trace_target() -> str | int | None:
    """Interpret the GIT_TRACE environment variable.

    Returns:
        None when tracing is off, 2 for stderr, a file descriptor (3-9),
        or an absolute path
    """
    value = os.environ.get("GIT_TRACE", "")
    if not value or value.lower() in ("0", "false"):
        return None
    if value.lower() in ("1", "2", "true"):
        return 2
    try:
        fd = int(value)
    except ValueError:
        pass
    else:
        if 3 <= fd <= 9:
            return fd
        return None
    if os.path.isabs(value):
        return value
    return None


def _configure_logging_from_trace() -> bool:
    """Send debug logging wherever GIT_TRACE points.

    Returns:
        True if tracing was configured
    """
    target = _get_trace_target()
    if target is None:
        return False
    if target == 2:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format=_TRACE_FORMAT)
        return True
    if isinstance(target, int):
        try:
            stream = os.fdopen(target, "w", buffering=1)
        except OSError as e:
            sys.stderr.write(f"Warning: Failed to open GIT_TRACE fd {target}: {e}\n")
            return False
        logging.basicConfig(level=logging.DEBUG, stream=stream, format=_TRACE_FORMAT)
        return True
    if os.path.isdir(target):
        filename = os.path.join(target, f"trace.{os.getpid()}")
    else:
        filename = target
    try:
        logging.basicConfig(
            level=logging.DEBUG, filename=filename, filemode="a", format=_TRACE_FORMAT
        )
    except OSError as e:
        sys.stderr.write(f"Warning: Failed to open GIT_TRACE file {target}: {e}\n")
        return False
    return True


def default_logging_config(verbose: bool = False) -> None:
    """Set up logging for command-line use.

    Args:
      verbose: Log debug messages instead of only progress messages
    """
    remove_null_handler()
    if not _configure_logging_from_trace():
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            stream=sys.stderr,
            format="%(message)s",
        )


def remove_null_handler() -> None:
    """Remove the null handler from the package logger."""
    _PACKAGE_LOGGER.removeHandler(_NULL_HANDLER)
