# cli.py -- Command-line interface for git-backport
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

"""Command-line interface for git-backport.

Usage::

    git-backport [-r PATH] [-D] [-B] [--head BRANCH] [--no-edit] [-v] ANCESTOR...

The ancestors are given from the branch closest to the head branch to the
most senior one. Unless ``--no-edit`` is given, the collected commits are
shown in ``$GIT_EDITOR`` (or ``$EDITOR``) and can be moved to other branches
by changing the first word of their line.
"""

__all__ = ["main"]

import argparse
import os
import subprocess
import sys
from collections.abc import Sequence

from dulwich.cli import launch_editor
from dulwich.errors import NotGitRepository
from dulwich.repo import Repo

from . import __version__
from .edit import Editor, TodoEditor, noop_editor
from .errors import BackportError, EditAborted
from .log_utils import default_logging_config, getLogger
from .porcelain import backport

logger = getLogger(__name__)


def _edit_text(text: bytes) -> bytes:
    try:
        return launch_editor(text)
    except subprocess.CalledProcessError as e:
        raise EditAborted(f"Editor exited with status {e.returncode}") from e
    except FileNotFoundError as e:
        raise EditAborted(f"Unable to run editor: {e.filename}") from e


def _encode(name: str) -> bytes:
    return os.fsencode(name)


def _open_repo(path: str, discover: bool) -> Repo:
    if discover:
        return Repo.discover(path)
    return Repo(path)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-backport",
        description="Move commits between a chain of related branches.",
    )
    parser.add_argument(
        "-r",
        "--repository",
        default=".",
        metavar="PATH",
        help="Path to the repository (default: current directory)",
    )
    parser.add_argument(
        "-D",
        "--no-discovery",
        action="store_true",
        help="Do not search parent directories for a repository",
    )
    parser.add_argument(
        "-B",
        "--no-backup",
        action="store_true",
        help="Do not back up branches before rewriting them",
    )
    parser.add_argument(
        "--head",
        metavar="BRANCH",
        help="Head branch (default: the checked-out branch)",
    )
    parser.add_argument(
        "--no-edit",
        action="store_true",
        help="Do not open an editor; keep every commit on its branch",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug output"
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s " + ".".join(map(str, __version__)),
    )
    parser.add_argument(
        "ancestors",
        nargs="+",
        metavar="ANCESTOR",
        help="Ancestor branches, from the closest to the most senior",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for git-backport.

    Args:
      argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
      Exit code
    """
    if argv is None:
        argv = sys.argv[1:]
    args = build_parser().parse_args(argv)
    default_logging_config(args.verbose)

    editor: Editor = noop_editor if args.no_edit else TodoEditor(_edit_text)
    try:
        repo = _open_repo(args.repository, not args.no_discovery)
    except NotGitRepository as e:
        logger.error("fatal: %s", e)
        return 1
    with repo:
        try:
            result = backport(
                repo,
                [_encode(name) for name in args.ancestors],
                head=_encode(args.head) if args.head is not None else None,
                editor=editor,
                backup=False if args.no_backup else None,
            )
        except BackportError as e:
            logger.error("fatal: %s", e)
            return 1
    if not result.changed:
        logger.info("Nothing changed.")
    for ref in result.backup_refs:
        logger.debug("Backup: %s", ref.decode("utf-8", "replace"))
    return 0


def _main() -> None:
    sys.exit(main())


if __name__ == "__main__":
    _main()
