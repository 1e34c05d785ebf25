# config.py -- Backport settings read from git configuration
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

"""Settings for a backport run.

Settings live in the ``[backport]`` section of the git configuration::

    [backport]
        backup = true
        backupPrefix = refs/heads/backport-backup/
        renames = true
        renameThreshold = 60
        updateWorktree = true
"""

__all__ = [
    "DEFAULT_BACKUP_PREFIX",
    "BackportConfig",
]

from dataclasses import dataclass

from dulwich.config import Config
from dulwich.diff_tree import RENAME_THRESHOLD

from .errors import ConfigError

DEFAULT_BACKUP_PREFIX = b"refs/heads/backport-backup/"

SECTION = (b"backport",)


def _get_boolean(config: Config, name: bytes, default: bool) -> bool:
    try:
        return config.get_boolean(SECTION, name, default)
    except ValueError as e:
        raise ConfigError(f"backport.{name.decode()}: {e}") from e


@dataclass
class BackportConfig:
    """Settings that control a backport run."""

    backup: bool = True
    backup_prefix: bytes = DEFAULT_BACKUP_PREFIX
    find_renames: bool = True
    rename_threshold: int = RENAME_THRESHOLD
    update_worktree: bool = True

    @classmethod
    def from_config(cls, config: Config) -> "BackportConfig":
        """Read settings from a git configuration.

        Args:
          config: Configuration to read, usually ``repo.get_config_stack()``

        Returns:
          A BackportConfig with defaults for unset values

        Raises:
          ConfigError: If a value cannot be parsed
        """
        settings = cls()
        settings.backup = _get_boolean(config, b"backup", settings.backup)
        settings.find_renames = _get_boolean(config, b"renames", settings.find_renames)
        settings.update_worktree = _get_boolean(
            config, b"updateWorktree", settings.update_worktree
        )
        try:
            prefix = config.get(SECTION, b"backupPrefix")
        except KeyError:
            pass
        else:
            if not prefix.startswith(b"refs/"):
                raise ConfigError(
                    f"backport.backupPrefix must start with refs/: {prefix!r}"
                )
            if not prefix.endswith(b"/"):
                prefix += b"/"
            settings.backup_prefix = prefix
        try:
            threshold = config.get(SECTION, b"renameThreshold")
        except KeyError:
            pass
        else:
            try:
                settings.rename_threshold = int(threshold)
            except ValueError as e:
                raise ConfigError(
                    f"backport.renameThreshold is not a number: {threshold!r}"
                ) from e
            if not 0 <= settings.rename_threshold <= 100:
                raise ConfigError(
                    f"backport.renameThreshold must be between 0 and 100: {threshold!r}"
                )
        return settings
