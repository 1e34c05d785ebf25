# edit.py -- Let an editor reassign collected commits to other branches
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

"""Reassigning collected commits to other branches.

Before anything is rewritten, an editor is shown every collected commit
together with the branch it is currently assigned to. The editor answers
with a list of :class:`Reassignment` events; it never sees or mutates the
run's own tables. Items cannot be added, removed or reordered.
"""

__all__ = [
    "Editor",
    "ItemView",
    "Reassignment",
    "TodoEditor",
    "noop_editor",
    "run_editor",
]

from collections.abc import Callable, Iterable, Sequence
from typing import NamedTuple, Protocol

from dulwich.objects import ObjectID

from .collect import BackportItem
from .errors import EditAborted, InvalidReassignment, InvalidTodo
from .log_utils import getLogger

logger = getLogger(__name__)


class ItemView(NamedTuple):
    """Read-only view of a collected commit, as shown to an editor."""

    index: int
    commit_id: ObjectID
    parents: tuple[ObjectID, ...]
    author: bytes
    message: bytes
    branch_index: int

    @property
    def summary(self) -> bytes:
        """First line of the commit message."""
        lines = self.message.replace(b"\r", b"\n").split(b"\n", 1)
        return lines[0]


class Reassignment(NamedTuple):
    """Move the item at item_index to the branch at branch_index."""

    item_index: int
    branch_index: int


class Editor(Protocol):
    """Decides which branch every collected commit belongs to.

    Editors may raise :class:`EditAborted` to stop the run.
    """

    def __call__(
        self, branches: Sequence[bytes], items: Sequence[ItemView]
    ) -> Iterable[Reassignment]: ...


def noop_editor(
    branches: Sequence[bytes], items: Sequence[ItemView]
) -> Iterable[Reassignment]:
    """Editor that keeps every commit on its branch."""
    return []


def run_editor(
    editor: Editor,
    branches: Sequence[bytes],
    items: Sequence[BackportItem],
    targets: Sequence[int],
) -> list[int]:
    """Show the items to an editor and apply its reassignments.

    Args:
      editor: Editor to run
      branches: Branch names, head first
      items: Collected items
      targets: Current target branch index of every item

    Returns:
      New target branch index of every item

    Raises:
      EditAborted: If the editor aborts
      InvalidReassignment: If the editor names an unknown item or branch
    """
    views = tuple(
        ItemView(
            index,
            item.commit.id,
            tuple(item.commit.parents),
            item.commit.author,
            item.commit.message,
            targets[index],
        )
        for index, item in enumerate(items)
    )
    new_targets = list(targets)
    for item_index, branch_index in editor(tuple(branches), views):
        if not 0 <= item_index < len(items):
            raise InvalidReassignment(f"No item at index {item_index}")
        if not 0 <= branch_index < len(branches):
            raise InvalidReassignment(f"No branch at index {branch_index}")
        if new_targets[item_index] != branch_index:
            logger.debug(
                "Moving %s to %s",
                views[item_index].commit_id[:8].decode("ascii"),
                branches[branch_index].decode("utf-8", "replace"),
            )
        new_targets[item_index] = branch_index
    return new_targets


class TodoEditor:
    """Editor that lets the user edit a todo list as text.

    Every commit gets one line, newest first::

        <branch> <short id> <summary>

    Changing the branch word (a branch name or its index in the chain)
    moves the commit. Deleting every line aborts the backport.
    """

    def __init__(self, edit_callback: Callable[[bytes], bytes]) -> None:
        """Initialize TodoEditor.

        Args:
          edit_callback: Called with the todo text, returns the edited text
        """
        self.edit_callback = edit_callback

    def format(self, branches: Sequence[bytes], items: Sequence[ItemView]) -> bytes:
        width = max(len(branch) for branch in branches)
        lines = [
            b"%s %s %s"
            % (branches[view.branch_index].ljust(width), view.commit_id[:8], view.summary)
            for view in items
        ]
        lines.append(b"")
        lines.append(b"# Backport in progress")
        lines.append(b"#")
        lines.append(b"# Branches, from head to most senior:")
        for index, branch in enumerate(branches):
            lines.append(b"#  %d %s" % (index, branch))
        lines.append(b"#")
        lines.append(b"# Change the first word of a line to move a commit to")
        lines.append(b"# another branch. Do not reorder, add or remove lines.")
        lines.append(b"#")
        lines.append(b"# If you remove everything, the backport will be aborted.")
        lines.append(b"#")
        return b"\n".join(lines) + b"\n"

    def _parse_branch(self, word: bytes, branches: Sequence[bytes]) -> int:
        if word in branches:
            return branches.index(word)
        try:
            index = int(word)
        except ValueError:
            raise InvalidTodo(f"Unknown branch: {word.decode('utf-8', 'replace')}")
        if not 0 <= index < len(branches):
            raise InvalidTodo(f"No branch at index {index}")
        return index

    def parse(
        self, text: bytes, branches: Sequence[bytes], items: Sequence[ItemView]
    ) -> list[Reassignment]:
        entries = []
        for line in text.splitlines():
            line = line.strip()
            if not line or line.startswith(b"#"):
                continue
            parts = line.split(None, 2)
            if len(parts) < 2:
                raise InvalidTodo(
                    f"Malformed line: {line.decode('utf-8', 'replace')}"
                )
            entries.append((parts[0], parts[1]))
        if not entries:
            raise EditAborted("Nothing to do")
        if len(entries) != len(items):
            raise InvalidTodo(
                f"Expected {len(items)} lines, found {len(entries)}; "
                "lines may not be added or removed"
            )
        events = []
        for view, (word, short_id) in zip(items, entries):
            if not view.commit_id.startswith(short_id.lower()):
                raise InvalidTodo(
                    f"Expected commit {view.commit_id[:8].decode('ascii')}, found "
                    f"{short_id.decode('utf-8', 'replace')}; lines may not be reordered"
                )
            branch_index = self._parse_branch(word, branches)
            if branch_index != view.branch_index:
                events.append(Reassignment(view.index, branch_index))
        return events

    def __call__(
        self, branches: Sequence[bytes], items: Sequence[ItemView]
    ) -> list[Reassignment]:
        if not items:
            return []
        edited = self.edit_callback(self.format(branches, items))
        return self.parse(edited, branches, items)
