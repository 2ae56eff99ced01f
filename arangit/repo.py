# repo.py -- Bare git repository kept in ArangoDB
# Copyright (C) 2026 The Arangit Authors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# Arangit is dual-licensed under the Apache License, Version 2.0 and the GNU
# General Public License as published by the Free Software Foundation; version 2.0
# or (at your option) any later version. You can redistribute it and/or
# modify it under the terms of either of these two licenses.
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

"""Bare git repository kept in ArangoDB.

An `ArangoRepo` is the `ArangoStore` of one database seen through dulwich's
repository interface, so that it can be served, fetched from and pushed to
like any other bare repository.

The control directory only exists for the files that have a slot in the
metadata store (``config``, ``shallow`` and ``description``); other named
files are dropped when written and read back as missing.
"""

__all__ = [
    "ArangoRepo",
]

from configparser import ConfigParser
from io import BytesIO
from types import TracebackType
from typing import TYPE_CHECKING

from dulwich import log_utils
from dulwich.config import ConfigFile
from dulwich.errors import NoIndexPresent, NotGitRepository
from dulwich.repo import BaseRepo

from .connector import ArangoConnector
from .errors import DatabaseNotFound
from .store import ArangoStore

if TYPE_CHECKING:
    from arango import ArangoClient
    from dulwich.attrs import GitAttributes
    from dulwich.index import Index

logger = log_utils.getLogger(__name__)

HEAD = b"HEAD"
DEFAULT_BRANCH = b"refs/heads/master"


class ArangoRepo(BaseRepo):
    """A bare git repository stored in an ArangoDB database."""

    def __init__(self, store: ArangoStore) -> None:
        """Open a repository on top of an existing store.

        Args:
          store: An open `ArangoStore`
        """
        self.store = store
        self.bare = True
        self._controldir = store.connector.database_name
        BaseRepo.__init__(self, store.object_store, store.refs)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} for {self._controldir!r}>"

    @classmethod
    def open(cls, connector: ArangoConnector, create: bool = False) -> "ArangoRepo":
        """Open the repository held by ``connector``'s database.

        Args:
          connector: A connector that has not been opened yet
          create: Whether to create and initialize the repository when the
            database does not exist
        Raises:
          NotGitRepository: if the database does not exist and ``create``
            is False
        """
        try:
            store, created = ArangoStore.open(connector, create=create)
        except DatabaseNotFound as exc:
            raise NotGitRepository(
                f"No git repository was found at {connector.database_name}"
            ) from exc
        if created:
            return cls.init_bare(store)
        return cls(store)

    @classmethod
    def from_conf(
        cls,
        database_name: str,
        conf: ConfigParser,
        create: bool = False,
        client: "ArangoClient | None" = None,
    ) -> "ArangoRepo":
        """Open a repository using the connection settings in ``conf``.

        Args:
          database_name: The database that holds the repository
          conf: A ConfigParser object
          create: Whether to create the repository if it does not exist
          client: Optional client shared with other repositories
        """
        connector = ArangoConnector.from_conf(database_name, conf, client=client)
        return cls.open(connector, create=create)

    @classmethod
    def init_bare(cls, store: ArangoStore) -> "ArangoRepo":
        """Initialize a new bare repository in ``store``.

        Writes the default configuration and description, and points HEAD
        at the master branch.

        Args:
          store: An open `ArangoStore`
        Returns: An `ArangoRepo` instance
        """
        ret = cls(store)
        ret._init_files(bare=True)
        ret.refs.set_symbolic_ref(HEAD, DEFAULT_BRANCH)
        logger.info("initialized repository in %s", store.connector.database_name)
        return ret

    def _determine_file_mode(self) -> bool:
        """Probe the file-system to determine whether permissions can be trusted.

        Returns: True if permissions can be trusted, False otherwise.
        """
        return False

    def _determine_symlinks(self) -> bool:
        return False

    def _put_named_file(self, path: str, contents: bytes) -> None:
        """Store a control file, if it is one that has a metadata slot.

        Args:
          path: The path to the file, relative to the control dir.
          contents: A string to write to the file.
        """
        misc = self.store.misc
        if path == "config":
            misc.set_config(ConfigFile.from_file(BytesIO(contents)))
        elif path == "shallow":
            misc.set_shallow(contents.split())
        elif path == "description":
            misc.set_description(contents)
        else:
            logger.debug("not storing control file %s", path)

    def _del_named_file(self, path: str) -> None:
        if path == "shallow":
            self.store.misc.set_shallow([])
        else:
            logger.debug("not removing control file %s", path)

    def get_named_file(
        self, path: str | bytes, basedir: str | None = None
    ) -> BytesIO | None:
        """Get a file from the control dir with a specific name.

        Args:
          path: The path to the file, relative to the control dir.
          basedir: Ignored; there is no directory
        Returns: An open file object, or None if the file does not exist.
        """
        path_str = path.decode() if isinstance(path, bytes) else path
        misc = self.store.misc
        if path_str == "config":
            f = BytesIO()
            misc.config().write_to_file(f)
            return BytesIO(f.getvalue())
        if path_str == "shallow":
            shallow = misc.shallow()
            if not shallow:
                return None
            return BytesIO(b"".join(sha + b"\n" for sha in sorted(shallow)))
        if path_str == "description":
            description = misc.description()
            if description is None:
                return None
            return BytesIO(description)
        return None

    def open_index(self) -> "Index":
        """Fail to open index for this repo, since it is bare.

        Raises:
          NoIndexPresent: Raised when no index is present
        """
        raise NoIndexPresent

    def get_config(self) -> ConfigFile:
        """Retrieve the config object.

        The returned object is a copy; pass it to ``store.misc.set_config``
        to save changes.

        Returns: `ConfigFile` object.
        """
        return self.store.misc.config()

    def get_shallow(self) -> set[bytes]:
        """Get the set of shallow commits."""
        return self.store.misc.shallow()

    def update_shallow(
        self, new_shallow: set[bytes] | None, new_unshallow: set[bytes] | None
    ) -> None:
        """Update the list of shallow objects.

        Args:
          new_shallow: Newly shallow objects
          new_unshallow: Newly no longer shallow objects
        """
        shallow = self.get_shallow()
        if new_shallow:
            shallow.update(new_shallow)
        if new_unshallow:
            shallow.difference_update(new_unshallow)
        self.store.misc.set_shallow(shallow)

    def get_description(self) -> bytes | None:
        """Retrieve the description of this repository, if any."""
        return self.store.misc.description()

    def set_description(self, description: bytes) -> None:
        """Set the description for this repository.

        Args:
          description: Text to set as description
        """
        self.store.misc.set_description(description)

    def get_gitattributes(self, tree: bytes | None = None) -> "GitAttributes":
        """Read gitattributes for the repository.

        There is no working tree, so there are never any attributes.
        """
        from dulwich.attrs import GitAttributes

        return GitAttributes([])

    def close(self) -> None:
        """Close the connection to the database."""
        self.store.close()

    def __enter__(self) -> "ArangoRepo":
        """Enter context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit context manager and close the repository."""
        self.close()
