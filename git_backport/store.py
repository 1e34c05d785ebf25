# store.py -- Object store operations used by the rewrite engine
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

"""Object store operations used by the rewrite engine.

The engine never holds commits in memory as a graph; it refers to every
commit by id and asks a :class:`Store` whenever it needs a commit's parents,
a merge, a cherry-pick or a new commit. :class:`RepoStore` implements the
protocol on top of a dulwich repository.
"""

__all__ = [
    "RepoStore",
    "Signature",
    "Store",
]

import time
from collections.abc import Sequence
from typing import NamedTuple, Protocol

from dulwich.graph import can_fast_forward, find_merge_base
from dulwich.objects import Commit, ObjectID
from dulwich.porcelain import get_user_timezones
from dulwich.refs import HEADREF, LOCAL_BRANCH_PREFIX, local_branch_name
from dulwich.repo import BaseRepo, get_user_identity

from .errors import BranchNotFound, StoreError
from .log_utils import getLogger
from .merge import MergeOptions, merge_trees

logger = getLogger(__name__)


class Signature(NamedTuple):
    """Identity and timestamp of a commit author or committer."""

    identity: bytes
    time: int
    timezone: int

    @classmethod
    def author_of(cls, commit: Commit) -> "Signature":
        return cls(commit.author, commit.author_time, commit.author_timezone)


class Store(Protocol):
    """Object store operations the backport engine relies on."""

    def resolve_branch(self, name: bytes) -> ObjectID:
        """Return the tip of a local branch."""
        ...

    def current_branch(self) -> bytes | None:
        """Return the short name of the checked-out branch, if any."""
        ...

    def get_commit(self, commit_id: ObjectID) -> Commit:
        """Read a commit."""
        ...

    def is_ancestor(self, ancestor: ObjectID, descendant: ObjectID) -> bool:
        """Check whether ancestor is reachable from descendant."""
        ...

    def merge_commits(
        self, ours: ObjectID, theirs: ObjectID, options: MergeOptions
    ) -> ObjectID:
        """Merge two commits and return the merged tree."""
        ...

    def cherry_pick(
        self, commit: Commit, onto: ObjectID, mainline: int, options: MergeOptions
    ) -> ObjectID:
        """Apply a commit's changes onto another commit and return the tree."""
        ...

    def create_commit(
        self,
        parents: Sequence[ObjectID],
        author: Signature,
        committer: Signature,
        message: bytes,
        tree: ObjectID,
    ) -> ObjectID:
        """Write a new commit."""
        ...

    def set_branch(self, name: bytes, target: ObjectID) -> None:
        """Force a local branch to point at target."""
        ...

    def add_ref_if_new(self, ref: bytes, target: ObjectID) -> bool:
        """Create a ref unless it already exists."""
        ...

    def default_signature(self) -> Signature:
        """Return the identity to use for commits created by this run."""
        ...


class RepoStore:
    """Store backed by a dulwich repository."""

    def __init__(self, repo: BaseRepo) -> None:
        """Initialize RepoStore.

        Args:
          repo: Repository to read from and write to
        """
        self.repo = repo
        self.object_store = repo.object_store

    def resolve_branch(self, name: bytes) -> ObjectID:
        try:
            return self.repo.refs[local_branch_name(name)]
        except KeyError:
            raise BranchNotFound(name)

    def current_branch(self) -> bytes | None:
        refnames, _ = self.repo.refs.follow(HEADREF)
        target = refnames[-1]
        if target == HEADREF or not target.startswith(LOCAL_BRANCH_PREFIX):
            return None
        return target[len(LOCAL_BRANCH_PREFIX) :]

    def get_commit(self, commit_id: ObjectID) -> Commit:
        try:
            obj = self.object_store[commit_id]
        except KeyError as e:
            raise StoreError(
                f"Missing commit {commit_id.decode('ascii', 'replace')}"
            ) from e
        if not isinstance(obj, Commit):
            raise StoreError(
                f"Expected commit {commit_id.decode('ascii', 'replace')}, "
                f"got {obj.type_name.decode()}"
            )
        return obj

    def is_ancestor(self, ancestor: ObjectID, descendant: ObjectID) -> bool:
        return can_fast_forward(self.repo, ancestor, descendant)

    def _merge_base_tree(self, ours: ObjectID, theirs: ObjectID) -> ObjectID | None:
        """Find the tree to use as merge base for two commits.

        Several merge bases are merged into a single virtual base, the way
        git's recursive strategy does. Conflicts while building the virtual
        base keep the first base's version.
        """
        bases = find_merge_base(self.repo, [ours, theirs])
        if not bases:
            return None
        base_tree = self.get_commit(bases[0]).tree
        for i, other in enumerate(bases[1:], 1):
            inner = find_merge_base(self.repo, [bases[0], other])
            inner_tree = self.get_commit(inner[0]).tree if inner else None
            base_tree, conflicts = merge_trees(
                self.object_store,
                inner_tree,
                base_tree,
                self.get_commit(other).tree,
                MergeOptions(fail_on_conflict=False),
            )
            if conflicts:
                logger.debug(
                    "Virtual merge base %d has %d conflicted paths", i, len(conflicts)
                )
        return base_tree

    def merge_commits(
        self, ours: ObjectID, theirs: ObjectID, options: MergeOptions
    ) -> ObjectID:
        base_tree = self._merge_base_tree(ours, theirs)
        tree, _ = merge_trees(
            self.object_store,
            base_tree,
            self.get_commit(ours).tree,
            self.get_commit(theirs).tree,
            options,
            description=(
                f"merge of {theirs[:8].decode('ascii')} into {ours[:8].decode('ascii')}"
            ),
        )
        return tree

    def cherry_pick(
        self, commit: Commit, onto: ObjectID, mainline: int, options: MergeOptions
    ) -> ObjectID:
        if not 0 <= mainline < len(commit.parents):
            raise StoreError(
                f"Commit {commit.id[:8].decode('ascii')} has no parent {mainline}"
            )
        base = self.get_commit(commit.parents[mainline])
        tree, _ = merge_trees(
            self.object_store,
            base.tree,
            self.get_commit(onto).tree,
            commit.tree,
            options,
            description=f"cherry-pick of {commit.id[:8].decode('ascii')}",
        )
        return tree

    def create_commit(
        self,
        parents: Sequence[ObjectID],
        author: Signature,
        committer: Signature,
        message: bytes,
        tree: ObjectID,
    ) -> ObjectID:
        commit = Commit()
        commit.tree = tree
        commit.parents = list(parents)
        commit.author, commit.author_time, commit.author_timezone = author
        commit.committer, commit.commit_time, commit.commit_timezone = committer
        commit.encoding = b"UTF-8"
        commit.message = message
        try:
            self.object_store.add_object(commit)
        except OSError as e:
            raise StoreError(f"Unable to write commit: {e}") from e
        return commit.id

    def set_branch(self, name: bytes, target: ObjectID) -> None:
        ref = local_branch_name(name)
        try:
            self.repo.refs.set_if_equals(ref, None, target, message=b"backport: rewrite")
        except OSError as e:
            raise StoreError(f"Unable to update {ref.decode()}: {e}") from e

    def add_ref_if_new(self, ref: bytes, target: ObjectID) -> bool:
        try:
            return self.repo.refs.add_if_new(ref, target, message=b"backport: backup")
        except OSError as e:
            raise StoreError(f"Unable to create {ref.decode()}: {e}") from e

    def default_signature(self) -> Signature:
        identity = get_user_identity(self.repo.get_config_stack(), "COMMITTER")
        _, commit_timezone = get_user_timezones()
        return Signature(identity, int(time.time()), commit_timezone)
