# collect.py -- Collect the commits between adjacent branch tips
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

"""Collect the commits that can be backported.

For every pair of adjacent branches the history of the junior branch is
walked back until the senior branch's tip is reached. Merge commits are
followed through the one parent that leads to the senior tip; if no parent
or more than one parent does, the walk cannot tell which side is the line
being edited and gives up.
"""

__all__ = [
    "BackportItem",
    "collect_items",
    "reaches",
]

from collections.abc import Sequence
from typing import NamedTuple

from dulwich.objects import Commit, ObjectID

from .branches import Branch
from .errors import AmbiguousAncestor, EmptyBranchChain, NotAnAncestor
from .log_utils import getLogger
from .store import Store

logger = getLogger(__name__)


class BackportItem(NamedTuple):
    """A collected commit and the branch it was collected from."""

    commit: Commit
    branch_index: int

    @property
    def id(self) -> ObjectID:
        return self.commit.id


def reaches(
    store: Store,
    start: ObjectID,
    target: ObjectID,
    memo: dict[ObjectID, bool],
) -> bool:
    """Check whether target is start or one of its ancestors.

    Args:
      store: Store to read commits from
      start: Commit to search from
      target: Commit to look for
      memo: Results of earlier searches for the same target; updated in place

    Returns:
      True if target is reachable from start
    """
    # (commit, expanded) pairs; a commit is decided once all parents are.
    stack = [(start, False)]
    while stack:
        commit_id, expanded = stack.pop()
        if commit_id in memo:
            continue
        if commit_id == target:
            memo[commit_id] = True
            continue
        parents = store.get_commit(commit_id).parents
        if expanded:
            memo[commit_id] = any(memo[parent] for parent in parents)
            continue
        stack.append((commit_id, True))
        stack.extend((parent, False) for parent in parents if parent not in memo)
    return memo[start]


def _next_commit(
    store: Store,
    commit: Commit,
    current: Branch,
    senior: Branch,
    memo: dict[ObjectID, bool],
) -> ObjectID:
    if not commit.parents:
        raise NotAnAncestor(senior.name, current.name)
    if len(commit.parents) == 1:
        return commit.parents[0]
    logger.debug("Found %d parents. Scanning...", len(commit.parents))
    # Merged-in branches are usually listed last.
    matching = [
        parent
        for parent in reversed(commit.parents)
        if reaches(store, parent, senior.tip, memo)
    ]
    if len(matching) != 1:
        raise AmbiguousAncestor(commit.id, matching)
    return matching[0]


def collect_items(store: Store, branches: Sequence[Branch]) -> list[BackportItem]:
    """Collect the commits of every branch that are not on the next branch.

    Args:
      store: Store to read commits from
      branches: Branch chain, head first

    Returns:
      Collected items, newest first within each branch, branches ordered
      from head to most senior

    Raises:
      EmptyBranchChain: If fewer than two branches are given
      AmbiguousAncestor: If a merge commit reaches the next branch's tip
        through zero or several parents
      NotAnAncestor: If a branch's tip is not an ancestor of the branch
        before it
    """
    if len(branches) < 2:
        raise EmptyBranchChain()
    logger.info("Collecting commits...")
    items = []
    for index in range(len(branches) - 1):
        current, senior = branches[index], branches[index + 1]
        memo: dict[ObjectID, bool] = {}
        commit_id = current.tip
        while commit_id != senior.tip:
            commit = store.get_commit(commit_id)
            logger.debug(
                "Found commit %s on %s",
                commit_id.decode("ascii"),
                current.name.decode("utf-8", "replace"),
            )
            items.append(BackportItem(commit, index))
            commit_id = _next_commit(store, commit, current, senior, memo)
    return items
