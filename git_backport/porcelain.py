# porcelain.py -- High-level backport entry point
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

"""High-level backport entry point.

:func:`backport` runs the whole pipeline on a repository: resolve the branch
chain, make sure the working tree is clean, collect the commits, let the
editor reassign them, detect forks, back up the branches, rewrite history
and finally point every branch at its new head. No branch moves unless all of
the steps before publishing succeed.
"""

__all__ = [
    "BackportResult",
    "backport",
    "check_clean",
]

import os
from collections.abc import Sequence
from dataclasses import dataclass, field

from dulwich.config import Config
from dulwich.objects import ObjectID
from dulwich.porcelain import open_repo_closing, reset, status
from dulwich.repo import BaseRepo, Repo

from .backup import backup_branches
from .branches import Branch, branch_names, publish_heads, resolve_branches
from .collect import collect_items
from .config import BackportConfig
from .edit import Editor, noop_editor, run_editor
from .errors import DirtyWorkingTree
from .forks import detect_forks
from .log_utils import getLogger
from .merge import MergeOptions
from .rewrite import HistoryRewriter
from .store import RepoStore

logger = getLogger(__name__)


@dataclass
class BackportResult:
    """Outcome of a backport run."""

    branches: list[Branch]
    heads: dict[bytes, ObjectID]
    backup_refs: list[bytes] = field(default_factory=list)
    mapping: dict[ObjectID, ObjectID] = field(default_factory=dict)

    @property
    def changed(self) -> list[bytes]:
        """Names of the branches whose tips moved."""
        return [
            branch.name
            for branch in self.branches
            if self.heads[branch.name] != branch.tip
        ]


def _has_worktree(repo: BaseRepo) -> bool:
    return isinstance(repo, Repo) and not repo.bare


def check_clean(repo: BaseRepo) -> None:
    """Make sure the working tree has no changes of any kind.

    Args:
      repo: Repository to check

    Raises:
      DirtyWorkingTree: If anything is staged, modified, untracked or ignored
    """
    if not _has_worktree(repo):
        return
    staged, unstaged, untracked = status(repo, ignored=True, untracked_files="all")
    paths: list[bytes | str] = []
    for kind in ("add", "delete", "modify"):
        paths.extend(staged.get(kind, []))
    paths.extend(unstaged)
    paths.extend(untracked)
    if paths:
        raise DirtyWorkingTree(paths)


def _sync_worktree(
    repo: BaseRepo, head_name: bytes | None, result: BackportResult
) -> None:
    if head_name is None or head_name not in result.heads:
        return
    branch = next(b for b in result.branches if b.name == head_name)
    new_tip = result.heads[head_name]
    if new_tip == branch.tip:
        return
    logger.info("Updating working tree...")
    reset(repo, "hard", new_tip)


def backport(
    repo: str | os.PathLike[str] | BaseRepo,
    ancestors: Sequence[bytes],
    head: bytes | None = None,
    editor: Editor | None = None,
    backup: bool | None = None,
    config: Config | BackportConfig | None = None,
) -> BackportResult:
    """Move commits between a chain of branches.

    Args:
      repo: Path to the repository or a repository object
      ancestors: Ancestor branches of head, from the closest one to the most
        senior one
      head: Head branch; defaults to the checked-out branch
      editor: Editor that may reassign commits; defaults to
        :func:`git_backport.edit.noop_editor`
      backup: Whether to back up branches first; defaults to the
        ``backport.backup`` setting
      config: Settings, or a configuration to read them from; defaults to
        the repository's configuration stack

    Returns:
      A :class:`BackportResult`

    Raises:
      BackportError: If the run fails; branches are left untouched then
    """
    with open_repo_closing(repo) as r:
        if isinstance(config, BackportConfig):
            settings = config
        else:
            settings = BackportConfig.from_config(
                config if config is not None else r.get_config_stack()
            )
        if backup is None:
            backup = settings.backup
        if editor is None:
            editor = noop_editor
        store = RepoStore(r)

        branches = resolve_branches(store, head, ancestors)
        check_clean(r)

        items = collect_items(store, branches)
        names = branch_names(branches)
        targets = run_editor(
            editor, names, items, [item.branch_index for item in items]
        )

        anchor = branches[-1].tip
        forks = detect_forks(store, items, targets, anchor)

        backup_refs = []
        if backup:
            backup_refs = backup_branches(store, branches, settings.backup_prefix)

        rewriter = HistoryRewriter(
            store,
            names,
            anchor,
            options=MergeOptions(
                find_renames=settings.find_renames,
                rename_threshold=settings.rename_threshold,
            ),
        )
        heads = rewriter.rewrite(items, targets, forks)

        current = store.current_branch()
        logger.info("Setting branches...")
        published = publish_heads(store, branches, heads)
        result = BackportResult(
            branches, published, backup_refs, rewriter.get_mapping()
        )
        if settings.update_worktree and _has_worktree(r):
            _sync_worktree(r, current, result)
        return result
