# merge.py -- Three-way tree merging with rename detection
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

"""Three-way tree merging.

Merges are computed on flattened trees (every file path mapped to its mode
and blob id), after moving paths that one side renamed so that both sides
agree on where a file lives. Conflicting content is never resolved
automatically: a conflict is reported and, by default, raised.
"""

__all__ = [
    "MergeOptions",
    "merge_blob_contents",
    "merge_trees",
]

import difflib
import functools
import stat
from collections.abc import Iterable
from dataclasses import dataclass

from dulwich.diff_tree import CHANGE_RENAME, RENAME_THRESHOLD, RenameDetector
from dulwich.index import commit_tree
from dulwich.merge import make_merge3
from dulwich.object_store import BaseObjectStore, iter_tree_contents
from dulwich.objects import S_ISGITLINK, Blob, ObjectID

from .errors import MergeConflict
from .log_utils import getLogger

logger = getLogger(__name__)

# (mode, sha) of a file in a flattened tree
Entry = tuple[int, ObjectID]

_minimal_matcher = functools.partial(difflib.SequenceMatcher, autojunk=False)


@dataclass(frozen=True)
class MergeOptions:
    """Options shared by merges and cherry-picks."""

    find_renames: bool = True
    fail_on_conflict: bool = True
    minimal: bool = True
    rename_threshold: int = RENAME_THRESHOLD


def merge_blob_contents(
    base: bytes, ours: bytes, theirs: bytes, minimal: bool = True
) -> bytes | None:
    """Merge three versions of a file line by line.

    Args:
      base: Common ancestor content
      ours: Our content
      theirs: Their content
      minimal: Disable the matcher's junk heuristic

    Returns:
      The merged content, or None if the changes overlap or a version is
      binary
    """
    if b"\0" in base or b"\0" in ours or b"\0" in theirs:
        return None
    m = make_merge3(
        base.splitlines(True),
        ours.splitlines(True),
        theirs.splitlines(True),
        sequence_matcher=_minimal_matcher if minimal else None,
    )
    merged: list[bytes] = []
    for group in m.merge_groups():
        if group[0] == "conflict":
            return None
        merged.extend(group[1])
    return b"".join(merged)


def _flatten(store: BaseObjectStore, tree_id: ObjectID | None) -> dict[bytes, Entry]:
    if tree_id is None:
        return {}
    result = {}
    for entry in iter_tree_contents(store, tree_id):
        assert entry.path is not None and entry.mode is not None
        assert entry.sha is not None
        result[entry.path] = (entry.mode, entry.sha)
    return result


def _find_renames(
    store: BaseObjectStore,
    base_tree: ObjectID,
    tree: ObjectID,
    threshold: int,
) -> dict[bytes, bytes]:
    detector = RenameDetector(store, rename_threshold=threshold)
    renames = {}
    for change in detector.changes_with_renames(base_tree, tree):
        if change.type == CHANGE_RENAME:
            assert change.old is not None and change.new is not None
            assert change.old.path is not None and change.new.path is not None
            renames[change.old.path] = change.new.path
    return renames


def _relocate(entries: dict[bytes, Entry], old: bytes, new: bytes) -> None:
    if old in entries and new not in entries:
        entries[new] = entries.pop(old)


class _TreeMerger:
    def __init__(self, store: BaseObjectStore, options: MergeOptions) -> None:
        self.store = store
        self.options = options
        self.conflicts: set[bytes] = set()

    def _apply_renames(
        self,
        base_tree: ObjectID,
        ours_tree: ObjectID,
        theirs_tree: ObjectID,
        base: dict[bytes, Entry],
        ours: dict[bytes, Entry],
        theirs: dict[bytes, Entry],
    ) -> None:
        threshold = self.options.rename_threshold
        ours_renames = _find_renames(self.store, base_tree, ours_tree, threshold)
        theirs_renames = _find_renames(self.store, base_tree, theirs_tree, threshold)
        for old, new in ours_renames.items():
            other = theirs_renames.get(old)
            if other is None:
                logger.debug("Following rename %r -> %r from ours", old, new)
                _relocate(base, old, new)
                _relocate(theirs, old, new)
            elif other != new:
                self.conflicts.add(old)
            else:
                _relocate(base, old, new)
        for old, new in theirs_renames.items():
            if old not in ours_renames:
                logger.debug("Following rename %r -> %r from theirs", old, new)
                _relocate(base, old, new)
                _relocate(ours, old, new)

    def _merge_mode(self, base: int, ours: int, theirs: int) -> int | None:
        if ours == theirs or base == theirs:
            return ours
        if base == ours:
            return theirs
        return None

    def _merge_entry(
        self,
        path: bytes,
        base: Entry | None,
        ours: Entry | None,
        theirs: Entry | None,
    ) -> Entry | None:
        if ours == theirs:
            return ours
        if base == ours:
            return theirs
        if base == theirs:
            return ours
        # Changed differently on both sides from here on.
        if base is None or ours is None or theirs is None:
            self.conflicts.add(path)
            return ours
        mode = self._merge_mode(base[0], ours[0], theirs[0])
        if mode is None:
            self.conflicts.add(path)
            return ours
        if ours[1] == theirs[1]:
            return (mode, ours[1])
        if base[1] == ours[1]:
            return (mode, theirs[1])
        if base[1] == theirs[1]:
            return (mode, ours[1])
        if not (stat.S_ISREG(ours[0]) and stat.S_ISREG(theirs[0])) or S_ISGITLINK(
            base[0]
        ):
            self.conflicts.add(path)
            return ours
        contents = []
        for sha in (base[1], ours[1], theirs[1]):
            blob = self.store[sha]
            assert isinstance(blob, Blob)
            contents.append(blob.as_raw_string())
        merged = merge_blob_contents(*contents, minimal=self.options.minimal)
        if merged is None:
            self.conflicts.add(path)
            return ours
        merged_blob = Blob.from_string(merged)
        self.store.add_object(merged_blob)
        return (mode, merged_blob.id)

    def _check_directories(self, paths: Iterable[bytes]) -> None:
        files = set(paths)
        for path in files:
            parts = path.split(b"/")
            for i in range(1, len(parts)):
                prefix = b"/".join(parts[:i])
                if prefix in files:
                    self.conflicts.add(prefix)

    def merge(
        self,
        base_tree: ObjectID | None,
        ours_tree: ObjectID,
        theirs_tree: ObjectID,
    ) -> dict[bytes, Entry]:
        base = _flatten(self.store, base_tree)
        ours = _flatten(self.store, ours_tree)
        theirs = _flatten(self.store, theirs_tree)
        if self.options.find_renames and base_tree is not None:
            self._apply_renames(base_tree, ours_tree, theirs_tree, base, ours, theirs)
        merged = {}
        for path in sorted(set(base) | set(ours) | set(theirs)):
            entry = self._merge_entry(
                path, base.get(path), ours.get(path), theirs.get(path)
            )
            if entry is not None:
                merged[path] = entry
        self._check_directories(merged)
        return merged


def merge_trees(
    store: BaseObjectStore,
    base_tree: ObjectID | None,
    ours_tree: ObjectID,
    theirs_tree: ObjectID,
    options: MergeOptions | None = None,
    description: str = "merge",
) -> tuple[ObjectID, list[bytes]]:
    """Perform a three-way merge of trees.

    Args:
      store: Object store to read from and write merged objects to
      base_tree: Common ancestor tree, or None if there is none
      ours_tree: Our tree
      theirs_tree: Their tree
      options: Merge options
      description: What is being merged, used in error messages

    Returns:
      Tuple of (merged tree id, sorted list of conflicted paths). Conflicted
      paths keep our version.

    Raises:
      MergeConflict: If there are conflicts and ``options.fail_on_conflict``
        is set
    """
    if options is None:
        options = MergeOptions()
    merger = _TreeMerger(store, options)
    merged = merger.merge(base_tree, ours_tree, theirs_tree)
    conflicts = sorted(merger.conflicts)
    if conflicts and options.fail_on_conflict:
        raise MergeConflict(conflicts, description)
    tree_id = commit_tree(
        store, [(path, sha, mode) for path, (mode, sha) in sorted(merged.items())]
    )
    return tree_id, conflicts
