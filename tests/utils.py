# utils.py -- Utility functions for git-backport tests
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

"""Utility functions for git-backport tests."""

__all__ = [
    "F",
    "TEST_AUTHOR",
    "TEST_COMMITTER",
    "CommitGraph",
]

from collections.abc import Mapping, Sequence

from dulwich.index import commit_tree
from dulwich.object_store import iter_tree_contents
from dulwich.objects import Blob, Commit, ObjectID
from dulwich.refs import local_branch_name
from dulwich.repo import BaseRepo

from git_backport.store import Signature

F = 0o100644

TEST_AUTHOR = b"Test Author <author@example.com>"
TEST_COMMITTER = Signature(b"Test Committer <committer@example.com>", 5000000, 0)


class CommitGraph:
    """Build commit graphs by name.

    Sample usage::

        graph = CommitGraph(repo)
        graph.commit("A", files={b"a": b"a\\n"})
        graph.commit("B", ["A"], files={b"b": b"b\\n"})
        graph.branch(b"main", "B")

    A commit's tree starts from the union of its parents' files; ``files``
    then adds or changes paths, and a value of None removes one. Commit times
    increase in the order commits are created.
    """

    def __init__(self, repo: BaseRepo) -> None:
        self.repo = repo
        self.store = repo.object_store
        self.ids: dict[str, ObjectID] = {}
        self._time = 1000000

    def __getitem__(self, name: str) -> ObjectID:
        return self.ids[name]

    def files(self, commit_id: ObjectID) -> dict[bytes, bytes]:
        """Return the contents of every file in a commit's tree."""
        tree_id = self.store[commit_id].tree
        return {
            entry.path: self.store[entry.sha].data
            for entry in iter_tree_contents(self.store, tree_id)
        }

    def commit(
        self,
        name: str,
        parents: Sequence[str] = (),
        files: Mapping[bytes, bytes | None] | None = None,
        message: bytes | None = None,
    ) -> ObjectID:
        parent_ids = [self.ids[parent] for parent in parents]
        contents: dict[bytes, bytes] = {}
        for parent_id in reversed(parent_ids):
            contents.update(self.files(parent_id))
        for path, data in (files or {}).items():
            if data is None:
                contents.pop(path, None)
            else:
                contents[path] = data
        entries = []
        for path, data in contents.items():
            blob = Blob.from_string(data)
            self.store.add_object(blob)
            entries.append((path, blob.id, F))
        commit = Commit()
        commit.tree = commit_tree(self.store, entries)
        commit.parents = parent_ids
        commit.author = TEST_AUTHOR
        commit.committer = TEST_AUTHOR
        commit.author_time = commit.commit_time = self._time
        commit.author_timezone = commit.commit_timezone = 0
        commit.message = message if message is not None else name.encode() + b"\n"
        self.store.add_object(commit)
        self._time += 100
        self.ids[name] = commit.id
        return commit.id

    def branch(self, name: bytes, commit: str) -> ObjectID:
        commit_id = self.ids[commit]
        self.repo.refs[local_branch_name(name)] = commit_id
        return commit_id

    def checkout(self, name: bytes) -> None:
        self.repo.refs.set_symbolic_ref(b"HEAD", local_branch_name(name))

    def name_of(self, commit_id: ObjectID) -> str | None:
        for name, value in self.ids.items():
            if value == commit_id:
                return name
        return None
