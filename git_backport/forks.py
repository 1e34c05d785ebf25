# forks.py -- Find where side chains rejoin the collected history
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

"""Find where side chains rejoin the collected history.

Each collected commit has one parent on the edited line (the next older
collected commit); any other parent starts a side chain. Side chains are
walked depth first. A commit reached a second time is a fork: history
diverged there and converges again later, so the rewrite has to merge the
branches at that point.
"""

__all__ = ["detect_forks"]

from collections.abc import Sequence

from dulwich.objects import ObjectID

from .collect import BackportItem
from .log_utils import getLogger
from .store import Store

logger = getLogger(__name__)


def detect_forks(
    store: Store,
    items: Sequence[BackportItem],
    targets: Sequence[int],
    anchor: ObjectID,
) -> dict[ObjectID, int]:
    """Build the fork table.

    Args:
      store: Store to read commits from
      items: Collected items, newest first
      targets: Target branch index of every item
      anchor: Tip of the most senior branch, the parent of the oldest item

    Returns:
      Dictionary mapping fork commit ids to the most senior branch index
      that reached them
    """
    logger.info("Detecting forks...")
    visited = {anchor}
    forks: dict[ObjectID, int] = {}
    expected = anchor
    for index in reversed(range(len(items))):
        commit = items[index].commit
        branch_index = targets[index]
        visited.add(commit.id)
        logger.debug(
            "Checking parents of %s on branch %d...",
            commit.id.decode("ascii"),
            branch_index,
        )
        stack = [parent for parent in commit.parents if parent != expected]
        while stack:
            commit_id = stack.pop()
            if commit_id in visited:
                logger.debug("Found fork commit %s.", commit_id.decode("ascii"))
                # Larger index is more senior; keep the most senior claim.
                if forks.get(commit_id, -1) < branch_index:
                    forks[commit_id] = branch_index
                continue
            logger.debug("Found side chain commit %s.", commit_id.decode("ascii"))
            visited.add(commit_id)
            stack.extend(store.get_commit(commit_id).parents)
        expected = commit.id
    return forks
