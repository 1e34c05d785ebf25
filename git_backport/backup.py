# backup.py -- Back up branches before they are rewritten
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

"""Back up branches before they are rewritten."""

__all__ = ["backup_branches"]

from collections.abc import Sequence

from .branches import Branch
from .config import DEFAULT_BACKUP_PREFIX
from .log_utils import getLogger
from .store import Store

logger = getLogger(__name__)


def backup_branches(
    store: Store, branches: Sequence[Branch], prefix: bytes = DEFAULT_BACKUP_PREFIX
) -> list[bytes]:
    """Create a backup ref for every branch of the chain.

    Existing refs are never overwritten; if ``<prefix><branch>`` is taken,
    ``-1``, ``-2`` and so on are appended until a free name is found.

    Args:
      store: Store to create refs in
      branches: Branches to back up
      prefix: Ref prefix for the backups

    Returns:
      The backup ref names, in chain order
    """
    refs = []
    for branch in branches:
        base = prefix + branch.name
        ref = base
        suffix = 0
        while not store.add_ref_if_new(ref, branch.tip):
            suffix += 1
            ref = b"%s-%d" % (base, suffix)
        logger.debug(
            "Backed up %s as %s",
            branch.name.decode("utf-8", "replace"),
            ref.decode("utf-8", "replace"),
        )
        refs.append(ref)
    return refs
