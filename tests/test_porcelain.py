# test_porcelain.py -- Tests for the backport entry point
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

"""Tests for git_backport.porcelain."""

import os

from dulwich import porcelain as dulwich_porcelain
from dulwich.repo import MemoryRepo, Repo

from git_backport.config import BackportConfig
from git_backport.edit import Reassignment
from git_backport.errors import (
    AmbiguousAncestor,
    DirtyWorkingTree,
    EditAborted,
    MergeConflict,
    NotAnAncestor,
)
from git_backport.porcelain import backport, check_clean

from . import TestCase
from .utils import CommitGraph


def move(graph: CommitGraph, name: str, branch_index: int):
    def editor(branches, items):
        for view in items:
            if view.commit_id == graph[name]:
                yield Reassignment(view.index, branch_index)

    return editor


class BackportTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.path = self.make_temp_dir()
        self.repo = Repo.init(self.path)
        self.addCleanup(self.repo.close)
        self.graph = CommitGraph(self.repo)
        self.graph.commit("S", files={b"s": b"s\n"})
        self.graph.commit("R1", ["S"], files={b"r1": b"r1\n"})
        self.graph.commit("M1", ["R1"], files={b"m1": b"m1\n"})
        self.graph.commit("M2", ["M1"], files={b"m2": b"m2\n"})
        self.graph.branch(b"stable", "S")
        self.graph.branch(b"release", "R1")
        self.graph.branch(b"main", "M2")
        self.graph.checkout(b"main")
        dulwich_porcelain.reset(self.repo, "hard", self.graph["M2"])

    def ref(self, name: bytes) -> bytes:
        return self.repo.refs[b"refs/heads/" + name]

    def assertUntouched(self) -> None:
        self.assertEqual(self.graph["M2"], self.ref(b"main"))
        self.assertEqual(self.graph["R1"], self.ref(b"release"))
        self.assertEqual(self.graph["S"], self.ref(b"stable"))

    def test_clean(self) -> None:
        check_clean(self.repo)

    def test_nothing_moved(self) -> None:
        result = backport(self.repo, [b"release", b"stable"])
        self.assertEqual([], result.changed)
        self.assertEqual(
            {
                b"main": self.graph["M2"],
                b"release": self.graph["R1"],
                b"stable": self.graph["S"],
            },
            result.heads,
        )
        self.assertUntouched()

    def test_backup_refs(self) -> None:
        result = backport(self.repo, [b"release", b"stable"])
        self.assertEqual(
            [
                b"refs/heads/backport-backup/main",
                b"refs/heads/backport-backup/release",
                b"refs/heads/backport-backup/stable",
            ],
            result.backup_refs,
        )
        self.assertEqual(
            self.graph["M2"], self.repo.refs[b"refs/heads/backport-backup/main"]
        )

    def test_no_backup(self) -> None:
        result = backport(self.repo, [b"release", b"stable"], backup=False)
        self.assertEqual([], result.backup_refs)
        self.assertNotIn(b"refs/heads/backport-backup/main", self.repo.refs)

    def test_backup_disabled_in_config(self) -> None:
        config = self.repo.get_config()
        config.set((b"backport",), b"backup", b"false")
        config.write_to_path()
        result = backport(self.repo, [b"release", b"stable"])
        self.assertEqual([], result.backup_refs)

    def test_settings_object(self) -> None:
        result = backport(
            self.repo, [b"release", b"stable"], config=BackportConfig(backup=False)
        )
        self.assertEqual([], result.backup_refs)

    def test_move_to_stable(self) -> None:
        result = backport(
            self.repo, [b"release", b"stable"], editor=move(self.graph, "M1", 2)
        )
        self.assertEqual([b"main", b"release", b"stable"], result.changed)
        stable = self.ref(b"stable")
        self.assertEqual(result.mapping[self.graph["M1"]], stable)
        self.assertEqual({b"s": b"s\n", b"m1": b"m1\n"}, self.graph.files(stable))
        main = self.ref(b"main")
        self.assertEqual(result.heads[b"main"], main)
        self.assertEqual(main, self.repo.head())
        self.assertEqual(
            {b"s": b"s\n", b"r1": b"r1\n", b"m1": b"m1\n", b"m2": b"m2\n"},
            self.graph.files(main),
        )
        check_clean(self.repo)

    def test_worktree_follows_checked_out_branch(self) -> None:
        result = backport(
            self.repo, [b"release", b"stable"], editor=move(self.graph, "M2", 1)
        )
        self.assertIn(b"main", result.changed)
        with open(os.path.join(self.path, "m2"), "rb") as f:
            self.assertEqual(b"m2\n", f.read())
        check_clean(self.repo)

    def test_explicit_head(self) -> None:
        self.graph.checkout(b"stable")
        dulwich_porcelain.reset(self.repo, "hard", self.graph["S"])
        result = backport(
            self.repo,
            [b"stable"],
            head=b"release",
            editor=move(self.graph, "R1", 0),
        )
        self.assertEqual([b"release", b"stable"], [b.name for b in result.branches])
        self.assertEqual([], result.changed)

    def test_untracked_file(self) -> None:
        with open(os.path.join(self.path, "stray"), "wb") as f:
            f.write(b"stray\n")
        with self.assertRaises(DirtyWorkingTree) as cm:
            backport(
                self.repo, [b"release", b"stable"], editor=move(self.graph, "M1", 2)
            )
        self.assertIn("stray", [os.fsdecode(p) for p in cm.exception.paths])
        self.assertUntouched()
        self.assertNotIn(b"refs/heads/backport-backup/main", self.repo.refs)

    def test_modified_file(self) -> None:
        with open(os.path.join(self.path, "s"), "wb") as f:
            f.write(b"changed\n")
        self.assertRaises(DirtyWorkingTree, check_clean, self.repo)
        self.assertRaises(
            DirtyWorkingTree, backport, self.repo, [b"release", b"stable"]
        )
        self.assertUntouched()

    def test_editor_abort(self) -> None:
        def abort(branches, items):
            raise EditAborted()

        self.assertRaises(
            EditAborted, backport, self.repo, [b"release", b"stable"], editor=abort
        )
        self.assertUntouched()
        self.assertNotIn(b"refs/heads/backport-backup/main", self.repo.refs)

    def test_conflict_leaves_branches(self) -> None:
        self.graph.commit("M3", ["M2"], files={b"r1": b"changed\n"})
        self.graph.branch(b"main", "M3")
        dulwich_porcelain.reset(self.repo, "hard", self.graph["M3"])
        self.assertRaises(
            MergeConflict,
            backport,
            self.repo,
            [b"release", b"stable"],
            editor=move(self.graph, "M3", 2),
        )
        self.assertEqual(self.graph["M3"], self.ref(b"main"))
        self.assertEqual(self.graph["S"], self.ref(b"stable"))

    def test_not_an_ancestor(self) -> None:
        self.graph.commit("U", [], files={b"u": b"u\n"})
        self.graph.branch(b"stable", "U")
        self.assertRaises(NotAnAncestor, backport, self.repo, [b"release", b"stable"])
        self.assertEqual(self.graph["U"], self.ref(b"stable"))
        self.assertNotIn(b"refs/heads/backport-backup/main", self.repo.refs)

    def test_ambiguous_ancestor(self) -> None:
        self.graph.commit("A", ["M2"], files={b"a": b"a\n"})
        self.graph.commit("B", ["R1"], files={b"b": b"b\n"})
        self.graph.commit("M", ["A", "B"])
        self.graph.branch(b"main", "M")
        dulwich_porcelain.reset(self.repo, "hard", self.graph["M"])
        self.assertRaises(
            AmbiguousAncestor, backport, self.repo, [b"release", b"stable"]
        )
        self.assertEqual(self.graph["M"], self.ref(b"main"))
        self.assertNotIn(b"refs/heads/backport-backup/main", self.repo.refs)

    def test_path(self) -> None:
        result = backport(self.path, [b"release", b"stable"], backup=False)
        self.assertEqual([], result.changed)


class BackportMemoryRepoTests(TestCase):
    def test_bare(self) -> None:
        repo = MemoryRepo()
        graph = CommitGraph(repo)
        graph.commit("S", files={b"s": b"s\n"})
        graph.commit("M1", ["S"], files={b"m1": b"m1\n"})
        graph.commit("M2", ["M1"], files={b"m2": b"m2\n"})
        graph.branch(b"stable", "S")
        graph.branch(b"main", "M2")
        result = backport(
            repo, [b"stable"], head=b"main", editor=move(graph, "M2", 1)
        )
        stable = repo.refs[b"refs/heads/stable"]
        self.assertEqual(result.mapping[graph["M2"]], stable)
        self.assertEqual({b"s": b"s\n", b"m2": b"m2\n"}, graph.files(stable))
        main = repo.refs[b"refs/heads/main"]
        self.assertEqual([graph["M1"], stable], repo[main].parents)
