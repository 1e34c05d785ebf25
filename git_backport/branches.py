# branches.py -- The chain of branches a backport operates on
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

"""The chain of branches a backport operates on.

Branches are ordered by seniority: index 0 is the head (most junior)
branch, the last index the most senior one. Each branch's tip must be an
ancestor of the tip of the branch before it.
"""

__all__ = [
    "Branch",
    "branch_names",
    "publish_heads",
    "resolve_branches",
]

from collections.abc import Sequence
from typing import NamedTuple

from dulwich.objects import ObjectID
from dulwich.refs import LOCAL_BRANCH_PREFIX

from .errors import DetachedHead, DuplicateBranch, EmptyBranchChain, MissingHead
from .log_utils import getLogger
from .store import Store

logger = getLogger(__name__)


class Branch(NamedTuple):
    """A local branch and the commit it pointed at when the run started."""

    name: bytes
    tip: ObjectID


def _short_name(name: bytes) -> bytes:
    if name.startswith(LOCAL_BRANCH_PREFIX):
        return name[len(LOCAL_BRANCH_PREFIX) :]
    return name


def branch_names(branches: Sequence[Branch]) -> list[bytes]:
    return [branch.name for branch in branches]


def resolve_branches(
    store: Store, head: bytes | None, ancestors: Sequence[bytes]
) -> list[Branch]:
    """Resolve the branch chain.

    Args:
      store: Store to resolve branches in
      head: Head branch, or None for the checked-out branch
      ancestors: Ancestor branches, from the one closest to head to the
        most senior one

    Returns:
      List of branches, head first

    Raises:
      EmptyBranchChain: If no ancestors are given
      DetachedHead: If head is None and HEAD is not a branch
      DuplicateBranch: If a branch is named twice
      BranchNotFound: If a branch does not exist
    """
    if not ancestors:
        raise EmptyBranchChain()
    if head is None:
        head = store.current_branch()
        if head is None:
            raise DetachedHead()
    names = [_short_name(name) for name in [head, *ancestors]]
    seen: set[bytes] = set()
    for name in names:
        if name in seen:
            raise DuplicateBranch(name)
        seen.add(name)
    branches = [Branch(name, store.resolve_branch(name)) for name in names]
    logger.debug(
        "Branches specified: %s",
        ", ".join(name.decode("utf-8", "replace") for name in names),
    )
    return branches


def publish_heads(
    store: Store,
    branches: Sequence[Branch],
    heads: Sequence[ObjectID | None],
) -> dict[bytes, ObjectID]:
    """Point every branch at its rewritten head.

    All heads are checked before any ref is written, so a missing head
    leaves every branch untouched.

    Args:
      store: Store to update refs in
      branches: The branch chain
      heads: New head for each branch, in chain order

    Returns:
      Dictionary mapping branch names to the heads they now point at

    Raises:
      MissingHead: If a branch has no head
    """
    published = {}
    for index, branch in enumerate(branches):
        head = heads[index] if index < len(heads) else None
        if head is None:
            raise MissingHead(branch.name)
        published[branch.name] = head
    for branch in branches:
        head = published[branch.name]
        if head == branch.tip:
            logger.debug("%s is unchanged", branch.name.decode("utf-8", "replace"))
            continue
        logger.info(
            "Setting %s to %s",
            branch.name.decode("utf-8", "replace"),
            head[:8].decode("ascii"),
        )
        store.set_branch(branch.name, head)
    return published
