# errors.py -- Errors raised by git-backport
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

"""Errors raised by git-backport.

Every error derives from :class:`BackportError`, so callers can report any
failure of a run without catching unrelated exceptions. None of these errors
is retried: each one ends the run.
"""

__all__ = [
    "AmbiguousAncestor",
    "BackportError",
    "BranchNotFound",
    "ConfigError",
    "DetachedHead",
    "DirtyWorkingTree",
    "DuplicateBranch",
    "DuplicateMapping",
    "EditAborted",
    "EmptyBranchChain",
    "InvalidReassignment",
    "InvalidTodo",
    "InvariantViolation",
    "MergeConflict",
    "MissingHead",
    "NotAnAncestor",
    "StoreError",
    "UnsupportedRewrite",
]

from collections.abc import Sequence


def _short(sha: bytes) -> str:
    return sha[:8].decode("ascii", "replace")


class BackportError(Exception):
    """Base class for all git-backport errors."""


class ConfigError(BackportError):
    """Raised when a backport configuration value is invalid."""


class DirtyWorkingTree(BackportError):
    """Raised when the working tree is not clean before a run."""

    def __init__(self, paths: Sequence[bytes | str]) -> None:
        """Initialize DirtyWorkingTree.

        Args:
          paths: Paths that are staged, modified, untracked or ignored
        """
        self.paths = list(paths)
        shown = ", ".join(
            p.decode("utf-8", "replace") if isinstance(p, bytes) else p
            for p in self.paths[:5]
        )
        if len(self.paths) > 5:
            shown += ", ..."
        super().__init__(f"Working tree is not clean: {shown}")


class EmptyBranchChain(BackportError):
    """Raised when fewer than two branches are given."""

    def __init__(self) -> None:
        super().__init__("At least one ancestor branch is required")


class DuplicateBranch(BackportError):
    """Raised when the same branch appears twice in the chain."""

    def __init__(self, name: bytes) -> None:
        self.name = name
        super().__init__(
            f"Branch {name.decode('utf-8', 'replace')} appears more than once"
        )


class BranchNotFound(BackportError):
    """Raised when a branch name does not resolve to a commit."""

    def __init__(self, name: bytes) -> None:
        self.name = name
        super().__init__(f"Branch not found: {name.decode('utf-8', 'replace')}")


class DetachedHead(BackportError):
    """Raised when the head branch defaults to HEAD but HEAD is detached."""

    def __init__(self) -> None:
        super().__init__("HEAD is not a branch; specify the head branch explicitly")


class NotAnAncestor(BackportError):
    """Raised when a branch's tip is not an ancestor of the next junior one."""

    def __init__(self, senior: bytes, junior: bytes) -> None:
        self.senior = senior
        self.junior = junior
        super().__init__(
            f"Branch {senior.decode('utf-8', 'replace')} is not an ancestor of "
            f"{junior.decode('utf-8', 'replace')}"
        )


class AmbiguousAncestor(BackportError):
    """Raised when a merge commit does not reach the next branch through exactly one parent."""

    def __init__(self, commit_id: bytes, matching: Sequence[bytes]) -> None:
        """Initialize AmbiguousAncestor.

        Args:
          commit_id: The merge commit being walked
          matching: Parents whose ancestry reaches the next branch's tip
        """
        self.commit_id = commit_id
        self.matching = list(matching)
        super().__init__(
            f"Ambiguous parents found for {_short(commit_id)}: "
            f"{len(self.matching)} parents reach the next ancestor branch. "
            "The next ancestor must be reachable via only one parent in each commit."
        )


class EditAborted(BackportError):
    """Raised by an editor to abort the run before anything is rewritten."""

    def __init__(self, message: str = "Backport aborted by editor") -> None:
        super().__init__(message)


class InvalidReassignment(BackportError):
    """Raised when an editor returns an out-of-range reassignment."""


class InvalidTodo(BackportError):
    """Raised when an edited todo list cannot be mapped back onto the items."""


class StoreError(BackportError):
    """Raised when reading or writing the object store fails."""


class MergeConflict(StoreError):
    """Raised when a merge or cherry-pick produces conflicts."""

    def __init__(self, paths: Sequence[bytes], description: str = "merge") -> None:
        """Initialize MergeConflict.

        Args:
          paths: Conflicted paths
          description: What was being merged
        """
        self.paths = list(paths)
        super().__init__(
            f"Conflicts during {description} in: "
            f"{', '.join(p.decode('utf-8', 'replace') for p in self.paths)}"
        )


class InvariantViolation(BackportError):
    """Raised when internal bookkeeping is inconsistent.

    This indicates a bug rather than a problem with the input.
    """


class DuplicateMapping(InvariantViolation):
    """Raised when a commit id is registered twice in a mapping table."""

    def __init__(self, table: str, key: bytes) -> None:
        self.table = table
        self.key = key
        super().__init__(f"{_short(key)} is already present in the {table}")


class MissingHead(InvariantViolation):
    """Raised when a branch has no rewritten head where one is required."""

    def __init__(self, name: bytes) -> None:
        self.name = name
        super().__init__(f"No head for branch {name.decode('utf-8', 'replace')}")


class UnsupportedRewrite(BackportError):
    """Raised when a side-chain parent would need remapping.

    A parent outside the collected chain whose own ancestry was rewritten
    cannot be remapped, and a side parent carrying commits of a more junior
    branch cannot be merged into a more senior one; the run stops instead of
    guessing.
    """

    def __init__(self, commit_id: bytes, parent_id: bytes) -> None:
        self.commit_id = commit_id
        self.parent_id = parent_id
        super().__init__(
            f"Cannot rewrite {_short(commit_id)}: side-chain parent "
            f"{_short(parent_id)} has rewritten or more junior ancestors"
        )
