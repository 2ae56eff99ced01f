# connector.py -- Connection and query layer on top of ArangoDB
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

"""Connection and query layer on top of ArangoDB.

`ArangoConnector` owns the client, creates the database and the collections
it is asked for on first use, and issues every query the stores need. Each
primitive is a single AQL round trip; writes wait for the data to be synced
to disk before returning.
"""

__all__ = [
    "DEFAULT_REQUEST_TIMEOUT",
    "DEFAULT_URL",
    "ArangoConnector",
    "client_from_conf",
    "load_conf",
]

import os
import re
from collections.abc import Mapping
from configparser import ConfigParser
from typing import IO, Any

from arango import ArangoClient, errno
from arango.exceptions import CollectionCreateError, DatabaseCreateError
from dulwich import log_utils

from .errors import DatabaseNotFound
from .iterator import Cursor

logger = log_utils.getLogger(__name__)

"""
# Configuration file sample
[arangodb]
# URL of the ArangoDB coordinator (Default http://localhost:8529)
url = http://localhost:8529
# Credentials used for every database (Default root, empty password)
username = root
password =
# Timeout for a single HTTP request in seconds (Default 60)
request_timeout = 60
"""

DEFAULT_URL = "http://localhost:8529"
DEFAULT_USERNAME = "root"
DEFAULT_REQUEST_TIMEOUT = 60.0

SYSTEM_DATABASE = "_system"

_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def load_conf(path: str | None = None, file: IO[str] | None = None) -> ConfigParser:
    """Load the backend configuration.

    Args:
      path: The path to the configuration file; defaults to the file named
        by the ``ARANGIT_CFG`` environment variable
      file: If provided read instead the file like object
    Returns: A `ConfigParser`; empty when no file was named at all, in which
      case all connection settings take their defaults.
    """
    conf = ConfigParser()
    if file:
        conf.read_file(file, path)
        return conf
    confpath = path or os.environ.get("ARANGIT_CFG")
    if not confpath:
        return conf
    if not os.path.isfile(confpath):
        raise FileNotFoundError(f"Unable to read configuration file {confpath}")
    conf.read(confpath)
    return conf


def client_from_conf(conf: ConfigParser) -> ArangoClient:
    """Create a client for the server named in the ``[arangodb]`` section.

    The client can be shared between connectors to different databases on
    that server.
    """
    return ArangoClient(
        hosts=conf.get("arangodb", "url", fallback=DEFAULT_URL),
        request_timeout=conf.getfloat(
            "arangodb", "request_timeout", fallback=DEFAULT_REQUEST_TIMEOUT
        ),
    )


def _check_field(field: str) -> str:
    if not _FIELD_RE.match(field):
        raise ValueError(f"invalid document field name {field!r}")
    return field


def _filter_clause(filters: Mapping[str, Any], bind_vars: dict[str, Any]) -> str:
    conditions = []
    for i, (field, value) in enumerate(filters.items()):
        bind_vars[f"f{i}"] = value
        conditions.append(f"d.{_check_field(field)} == @f{i}")
    if not conditions:
        return ""
    return " FILTER " + " && ".join(conditions)


def _object_literal(match: Mapping[str, Any], bind_vars: dict[str, Any]) -> str:
    attributes = []
    for i, (field, value) in enumerate(match.items()):
        bind_vars[f"m{i}"] = value
        attributes.append(f"{_check_field(field)}: @m{i}")
    return "{ " + ", ".join(attributes) + " }"


class ArangoConnector:
    """A connector to a single ArangoDB database."""

    def __init__(
        self,
        database_name: str,
        url: str = DEFAULT_URL,
        username: str = DEFAULT_USERNAME,
        password: str = "",
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        client: ArangoClient | None = None,
    ) -> None:
        """Initialize an ArangoConnector.

        No connection is made until `open` is called.

        Args:
          database_name: The database that holds the repository
          url: URL of the ArangoDB server
          username: User to authenticate as
          password: Password for ``username``
          request_timeout: Timeout for a single HTTP request, in seconds
          client: Client to use instead of creating one; it is shared, so
            `close` leaves it open
        """
        self.database_name = database_name
        self.url = url
        self.username = username
        self.password = password
        self.request_timeout = request_timeout
        self._shared_client = client
        self.client: ArangoClient | None = None
        self._db: Any = None
        self._collections: dict[str, Any] = {}

    @classmethod
    def from_conf(
        cls,
        database_name: str,
        conf: ConfigParser,
        client: ArangoClient | None = None,
    ) -> "ArangoConnector":
        """Create a connector from the ``[arangodb]`` section of ``conf``.

        Args:
          database_name: The database that holds the repository
          conf: A ConfigParser object
          client: Optional shared client, see `client_from_conf`
        """
        return cls(
            database_name,
            url=conf.get("arangodb", "url", fallback=DEFAULT_URL),
            username=conf.get("arangodb", "username", fallback=DEFAULT_USERNAME),
            password=conf.get("arangodb", "password", fallback=""),
            request_timeout=conf.getfloat(
                "arangodb", "request_timeout", fallback=DEFAULT_REQUEST_TIMEOUT
            ),
            client=client,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.database_name!r}, url={self.url!r})"

    def open(self, create: bool = True) -> bool:
        """Connect to the server and make sure the database exists.

        Args:
          create: Whether to create the database if it does not exist
        Returns: True if the database was created by this call, False if it
          already existed.
        Raises:
          DatabaseNotFound: if the database does not exist and ``create``
            is False
          arango.exceptions.ArangoError: if the server can not be reached or
            the database can not be created
        """
        client = self._shared_client
        if client is None:
            client = ArangoClient(hosts=self.url, request_timeout=self.request_timeout)
        try:
            sys_db = client.db(
                SYSTEM_DATABASE,
                username=self.username,
                password=self.password,
                verify=True,
            )
            created = False
            if not sys_db.has_database(self.database_name):
                if not create:
                    raise DatabaseNotFound(self.database_name)
                try:
                    sys_db.create_database(self.database_name)
                except DatabaseCreateError as exc:
                    if exc.error_code != errno.DUPLICATE_NAME:
                        raise
                    logger.debug(
                        "database %s was created concurrently", self.database_name
                    )
                else:
                    logger.debug("created database %s", self.database_name)
                    created = True
            db = client.db(
                self.database_name, username=self.username, password=self.password
            )
        except BaseException:
            if client is not self._shared_client:
                client.close()
            raise
        self.client = client
        self._db = db
        self._collections = {}
        return created

    @property
    def db(self) -> Any:
        """The python-arango database handle."""
        if self._db is None:
            raise RuntimeError(f"{self!r} is not open")
        return self._db

    def close(self) -> None:
        """Close the HTTP session to the server, unless the client is shared."""
        if self.client is not None and self.client is not self._shared_client:
            self.client.close()
        self.client = None
        self._db = None
        self._collections = {}

    def collection(self, name: str) -> Any:
        """Return the named collection, creating it if it does not exist.

        Args:
          name: Collection name
        Returns: The python-arango collection handle
        """
        try:
            return self._collections[name]
        except KeyError:
            pass
        db = self.db
        if not db.has_collection(name):
            try:
                db.create_collection(name)
            except CollectionCreateError as exc:
                if exc.error_code != errno.DUPLICATE_NAME:
                    raise
                logger.debug("collection %s was created concurrently", name)
            else:
                logger.debug("created collection %s in %s", name, self.database_name)
        coll = db.collection(name)
        self._collections[name] = coll
        return coll

    def _execute(self, query: str, bind_vars: dict[str, Any]) -> Cursor:
        return self.db.aql.execute(query, bind_vars=bind_vars)

    def _execute_all(self, query: str, bind_vars: dict[str, Any]) -> list[Any]:
        cursor = self._execute(query, bind_vars)
        try:
            return list(cursor)
        finally:
            cursor.close(ignore_missing=True)

    def find(
        self,
        collection: str,
        filters: Mapping[str, Any] | None = None,
        limit: int | None = None,
    ) -> Cursor:
        """Query the documents matching all of ``filters``.

        Args:
          collection: Collection to query
          filters: Mapping of field name to required value; all documents
            when empty
          limit: Maximum number of documents to return
        Returns: A cursor; the caller is responsible for closing it
        """
        bind_vars: dict[str, Any] = {"@collection": collection}
        query = "FOR d IN @@collection" + _filter_clause(filters or {}, bind_vars)
        if limit is not None:
            bind_vars["limit"] = limit
            query += " LIMIT @limit"
        return self._execute(query + " RETURN d", bind_vars)

    def values(self, collection: str, field: str) -> Cursor:
        """Query the distinct values of a field across a collection.

        Args:
          collection: Collection to query
          field: Field to return
        Returns: A cursor; the caller is responsible for closing it
        """
        query = f"FOR d IN @@collection RETURN DISTINCT d.{_check_field(field)}"
        return self._execute(query, {"@collection": collection})

    def count(self, collection: str) -> int:
        """Return the number of documents in a collection."""
        query = "FOR d IN @@collection COLLECT WITH COUNT INTO length RETURN length"
        (length,) = self._execute_all(query, {"@collection": collection})
        return int(length)

    def upsert(
        self,
        collection: str,
        match: Mapping[str, Any],
        values: Mapping[str, Any],
    ) -> None:
        """Insert a document, or update the one that matches.

        Args:
          collection: Collection to write to
          match: Fields that identify the document; stored on insert
          values: Fields to set on insert or update
        """
        bind_vars: dict[str, Any] = {"@collection": collection, "values": dict(values)}
        literal = _object_literal(match, bind_vars)
        query = (
            f"UPSERT {literal} INSERT MERGE({literal}, @values) UPDATE @values"
            " IN @@collection OPTIONS { waitForSync: true }"
        )
        self._execute_all(query, bind_vars)

    def insert_if_absent(
        self,
        collection: str,
        match: Mapping[str, Any],
        values: Mapping[str, Any],
    ) -> bool:
        """Insert a document unless one matching ``match`` exists.

        Returns: True if the document was inserted
        """
        bind_vars: dict[str, Any] = {"@collection": collection, "values": dict(values)}
        literal = _object_literal(match, bind_vars)
        query = (
            f"UPSERT {literal} INSERT MERGE({literal}, @values) UPDATE {{}}"
            " IN @@collection OPTIONS { waitForSync: true } RETURN OLD"
        )
        return self._execute_all(query, bind_vars) == [None]

    def update(
        self,
        collection: str,
        filters: Mapping[str, Any],
        values: Mapping[str, Any],
    ) -> int:
        """Update the documents matching all of ``filters``.

        The filter and the update happen in the same query, so a document is
        only changed if it still matches when it is written.

        Returns: The number of documents updated
        """
        bind_vars: dict[str, Any] = {"@collection": collection, "values": dict(values)}
        query = (
            "FOR d IN @@collection"
            + _filter_clause(filters, bind_vars)
            + " UPDATE d WITH @values IN @@collection"
            " OPTIONS { waitForSync: true } RETURN NEW._key"
        )
        return len(self._execute_all(query, bind_vars))

    def remove(self, collection: str, filters: Mapping[str, Any]) -> int:
        """Remove the documents matching all of ``filters``.

        Returns: The number of documents removed
        """
        bind_vars: dict[str, Any] = {"@collection": collection}
        query = (
            "FOR d IN @@collection"
            + _filter_clause(filters, bind_vars)
            + " REMOVE d IN @@collection OPTIONS { waitForSync: true } RETURN OLD._key"
        )
        return len(self._execute_all(query, bind_vars))

    def get_document(self, collection: str, key: str) -> dict[str, Any] | None:
        """Read a document by its ``_key``.

        Returns: The document, or None if there is no such document
        """
        return self.collection(collection).get(key)
