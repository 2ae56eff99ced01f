# store.py -- Composed ArangoDB storage for a git repository
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

"""Composed ArangoDB storage for a git repository."""

__all__ = [
    "ArangoStore",
    "open_store",
]

import types

from .connector import DEFAULT_REQUEST_TIMEOUT, DEFAULT_USERNAME, ArangoConnector
from .misc import MiscStore
from .object_store import ArangoObjectStore
from .refs import ArangoRefsContainer


class ArangoStore:
    """Objects, refs and metadata of one repository, sharing a connector.

    Attributes:
      connector: The `ArangoConnector` all queries go through
      object_store: The `ArangoObjectStore`
      refs: The `ArangoRefsContainer`
      misc: The `MiscStore`
    """

    def __init__(self, connector: ArangoConnector) -> None:
        """Set up the stores, creating their collections if needed.

        Args:
          connector: An open `ArangoConnector`
        """
        self.connector = connector
        self.object_store = ArangoObjectStore(connector)
        self.refs = ArangoRefsContainer(connector)
        self.misc = MiscStore(connector)

    @classmethod
    def open(
        cls, connector: ArangoConnector, create: bool = True
    ) -> tuple["ArangoStore", bool]:
        """Open ``connector`` and set up the stores on top of it.

        Args:
          connector: A connector that has not been opened yet
          create: Whether to create the database if it does not exist
        Returns: Tuple of the store and whether the database was created
        """
        created = connector.open(create=create)
        try:
            store = cls(connector)
        except BaseException:
            connector.close()
            raise
        return store, created

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.connector!r})"

    def close(self) -> None:
        """Close the connection to the database."""
        self.connector.close()

    def __enter__(self) -> "ArangoStore":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        self.close()


def open_store(
    url: str,
    database_name: str,
    username: str = DEFAULT_USERNAME,
    password: str = "",
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    create: bool = True,
) -> tuple[ArangoStore, bool]:
    """Open the storage for a repository, creating the database if needed.

    Args:
      url: URL of the ArangoDB server
      database_name: Database holding the repository
      username: User to authenticate as
      password: Password for ``username``
      request_timeout: Timeout for a single HTTP request, in seconds
      create: Whether to create the database if it does not exist
    Returns: Tuple of the `ArangoStore` and whether the database was created,
      in which case the repository still needs to be initialized.
    """
    connector = ArangoConnector(
        database_name,
        url=url,
        username=username,
        password=password,
        request_timeout=request_timeout,
    )
    return ArangoStore.open(connector, create=create)
