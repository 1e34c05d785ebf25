# rewrite.py -- Rewrite the history of a branch chain
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

"""Rewrite the history of a branch chain.

Commits are replayed from oldest to newest onto the branch they are
assigned to. Before a commit lands on a branch, that branch is caught up:
every more senior branch that gained commits is merged forward into it,
most senior first. A commit whose parents did not change is kept as is, so
untouched history keeps its ids.

The rewriter keeps a forward map (original commit id to rewritten id) and
its inverse. Both only ever gain fresh keys. Merges created while catching
up a branch are recorded in that branch's overlay and in the inverse map,
pointing back at the original commit the merged-in branch represented.

A merge picked onto a branch keeps its side parents only when their history
holds nothing rewritten and nothing picked onto a more junior branch.
"""

__all__ = ["HistoryRewriter"]

from collections.abc import Mapping, Sequence

from dulwich.objects import Commit, ObjectID

from .collect import BackportItem
from .errors import DuplicateMapping, InvariantViolation, MissingHead, UnsupportedRewrite
from .log_utils import getLogger
from .merge import MergeOptions
from .store import Signature, Store

logger = getLogger(__name__)


def _add_fresh(
    table: dict[ObjectID, ObjectID], name: str, key: ObjectID, value: ObjectID
) -> None:
    if key in table:
        raise DuplicateMapping(name, key)
    table[key] = value


class HistoryRewriter:
    """Rewrites the history of a chain of branches."""

    def __init__(
        self,
        store: Store,
        branches: Sequence[bytes],
        anchor: ObjectID,
        *,
        options: MergeOptions | None = None,
        committer: Signature | None = None,
    ) -> None:
        """Initialize a rewriter.

        Args:
          store: Store to read commits from and write new commits to
          branches: Branch names, head first
          anchor: Tip of the most senior branch; everything collected
            descends from it
          options: Options for merges and cherry-picks
          committer: Committer of new commits, defaults to the store's
            default signature
        """
        self.store = store
        self.branches = list(branches)
        self.anchor = anchor
        self.options = options if options is not None else MergeOptions()
        self.committer = (
            committer if committer is not None else store.default_signature()
        )
        count = len(self.branches)
        self.heads: list[ObjectID | None] = [None] * count
        self.map: dict[ObjectID, ObjectID] = {}
        self.inverse_map: dict[ObjectID, ObjectID] = {}
        self.overlays: list[dict[ObjectID, ObjectID]] = [{} for _ in range(count)]
        self.dirty = [False] * count
        self._branch_of: dict[ObjectID, int] = {}
        self._lowest: dict[ObjectID, int] = {}

        # The anchor is never rewritten.
        self._register(anchor, anchor)
        self._branch_of[anchor] = count - 1
        self.heads[-1] = anchor
        for index in range(count - 1):
            self.dirty[index] = True

    def _name(self, branch_index: int) -> str:
        return self.branches[branch_index].decode("utf-8", "replace")

    def _register(self, original: ObjectID, new: ObjectID) -> None:
        _add_fresh(self.map, "forward map", original, new)
        _add_fresh(self.inverse_map, "inverse map", new, original)

    def _head(self, branch_index: int) -> ObjectID:
        head = self.heads[branch_index]
        if head is None:
            raise MissingHead(self.branches[branch_index])
        return head

    def _merge_forward(self, branch_index: int, original: ObjectID) -> ObjectID:
        """Bring one branch up to date with the branch above it.

        Args:
          branch_index: Branch to update; the next senior branch must be
            current already
          original: Original commit the senior branch's head represents

        Returns:
          The original commit this branch's head now represents
        """
        senior = self._head(branch_index + 1)
        head = self.heads[branch_index]
        logger.debug("Catching up branch %s...", self._name(branch_index))
        if head is None or self.store.is_ancestor(head, senior):
            self.heads[branch_index] = senior
        else:
            tree = self.store.merge_commits(head, senior, self.options)
            message = b"Merge %s into %s\n" % (
                self.branches[branch_index + 1],
                self.branches[branch_index],
            )
            merge = self.store.create_commit(
                [head, senior], self.committer, self.committer, message, tree
            )
            logger.debug(
                "Merged %s into %s as %s",
                self._name(branch_index + 1),
                self._name(branch_index),
                merge.decode("ascii"),
            )
            self.heads[branch_index] = merge
            _add_fresh(self.inverse_map, "inverse map", merge, original)
        _add_fresh(
            self.overlays[branch_index],
            f"overlay of {self._name(branch_index)}",
            original,
            self._head(branch_index),
        )
        self.dirty[branch_index] = False
        return original

    def catch_up_branch(self, branch_index: int) -> ObjectID:
        """Make sure a branch contains everything from its senior branches.

        Args:
          branch_index: Branch to catch up

        Returns:
          Original commit id that the branch's head represents
        """
        last = len(self.branches) - 1
        pending = []
        while branch_index < last and self.dirty[branch_index]:
            pending.append(branch_index)
            branch_index += 1
        original = self.inverse_map[self._head(branch_index)]
        while pending:
            original = self._merge_forward(pending.pop(), original)
        return original

    def _lowest_branch(self, start: ObjectID) -> int:
        """Find the most junior branch that a commit's history reaches.

        Walking back from start, every commit picked by this run that is
        reached first contributes the branch it was picked onto.

        Returns:
          The smallest branch index reached, the most senior index if no
          picked commit is reached, or -1 if a reached commit was rewritten
        """
        # (commit, expanded) pairs; a commit is decided once all parents are.
        stack = [(start, False)]
        while stack:
            commit_id, expanded = stack.pop()
            if commit_id in self._lowest:
                continue
            if commit_id in self.map:
                if self.map[commit_id] == commit_id:
                    self._lowest[commit_id] = self._branch_of[commit_id]
                else:
                    self._lowest[commit_id] = -1
                continue
            parents = self.store.get_commit(commit_id).parents
            if expanded:
                self._lowest[commit_id] = min(
                    (self._lowest[parent] for parent in parents),
                    default=len(self.branches) - 1,
                )
                continue
            stack.append((commit_id, True))
            stack.extend(
                (parent, False) for parent in parents if parent not in self._lowest
            )
        return self._lowest[start]

    def resolve_outside_parent(
        self, commit_id: ObjectID, parent: ObjectID, branch_index: int
    ) -> ObjectID:
        """Find the replacement for a parent that is not on the edited line.

        Args:
          commit_id: Commit whose parent is being resolved
          parent: The parent
          branch_index: Branch the commit is being picked onto

        Returns:
          The rewritten parent if it was rewritten, else the parent itself

        Raises:
          UnsupportedRewrite: If the parent was not rewritten itself but some
            of its ancestors were, or if it would bring changes of a more
            junior branch onto this one
        """
        if parent in self.map:
            if self._branch_of[parent] < branch_index:
                raise UnsupportedRewrite(commit_id, parent)
            return self.map[parent]
        if self._lowest_branch(parent) >= branch_index:
            return parent
        raise UnsupportedRewrite(commit_id, parent)

    def pick(
        self, commit: Commit, branch_index: int, expected_parent: ObjectID
    ) -> ObjectID:
        """Replay a commit onto a branch.

        Args:
          commit: Original commit
          branch_index: Branch the commit is assigned to
          expected_parent: Original id of the next older collected commit

        Returns:
          Id of the replayed commit
        """
        self.catch_up_branch(branch_index)
        try:
            mainline = commit.parents.index(expected_parent)
        except ValueError:
            raise InvariantViolation(
                f"{commit.id.decode('ascii')} is not a child of "
                f"{expected_parent.decode('ascii')}"
            )
        head = self._head(branch_index)
        parents = [
            head
            if i == mainline
            else self.resolve_outside_parent(commit.id, parent, branch_index)
            for i, parent in enumerate(commit.parents)
        ]
        if parents == commit.parents:
            new_id = commit.id
            logger.debug(
                "Keeping %s on %s", commit.id.decode("ascii"), self._name(branch_index)
            )
        else:
            tree = self.store.cherry_pick(commit, head, mainline, self.options)
            new_id = self.store.create_commit(
                parents,
                Signature.author_of(commit),
                self.committer,
                commit.message,
                tree,
            )
            logger.debug(
                "Picked %s onto %s as %s",
                commit.id.decode("ascii"),
                self._name(branch_index),
                new_id.decode("ascii"),
            )
        self._register(commit.id, new_id)
        self._branch_of[commit.id] = branch_index
        self.heads[branch_index] = new_id
        for index in range(branch_index):
            self.dirty[index] = True
        return new_id

    def rewrite(
        self,
        items: Sequence[BackportItem],
        targets: Sequence[int],
        forks: Mapping[ObjectID, int],
    ) -> list[ObjectID | None]:
        """Replay all collected commits.

        Args:
          items: Collected items, newest first
          targets: Target branch index of every item
          forks: Fork table from :func:`git_backport.forks.detect_forks`

        Returns:
          The new head of every branch
        """
        logger.info("Transforming history...")
        expected = self.anchor
        for index in reversed(range(len(items))):
            commit = items[index].commit
            self.pick(commit, targets[index], expected)
            fork_branch = forks.get(commit.id)
            if fork_branch is not None:
                logger.debug(
                    "Fork at %s, catching up %s",
                    commit.id.decode("ascii"),
                    self._name(fork_branch),
                )
                self.catch_up_branch(fork_branch)
            expected = commit.id
        self.catch_up_branch(0)
        self.check_invariants()
        return list(self.heads)

    def check_invariants(self) -> None:
        """Verify the bookkeeping tables.

        Raises:
          InvariantViolation: If the forward map, the overlays and the
            inverse map disagree, or the most senior branch is dirty
        """
        values = set()
        for original, new in self.map.items():
            if self.inverse_map.get(new) != original:
                raise InvariantViolation(
                    f"Inverse map does not map {new.decode('ascii')} back"
                )
            values.add(new)
        for overlay in self.overlays:
            for original, new in overlay.items():
                if self.inverse_map.get(new) != original:
                    raise InvariantViolation(
                        f"Inverse map does not map {new.decode('ascii')} back"
                    )
                values.add(new)
        for key in self.inverse_map:
            if key not in values:
                raise InvariantViolation(
                    f"Inverse map entry {key.decode('ascii')} has no forward entry"
                )
        if self.dirty[-1]:
            raise InvariantViolation(f"{self._name(-1)} can not be dirty")

    def get_mapping(self) -> dict[ObjectID, ObjectID]:
        """Get the mapping of original commit ids to rewritten ids."""
        return self.map.copy()
