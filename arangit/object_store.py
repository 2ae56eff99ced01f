# object_store.py -- Git object store on top of ArangoDB
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

"""Git object store on top of ArangoDB.

Every object is one document in the ``objects`` collection::

    {"hash": "<hex sha>", "type": <type number>, "object": "<base64 raw data>"}

The raw data is the object contents without the git header, uncompressed.
Documents are only ever written with an upsert keyed on ``(hash, type)``,
which is what keeps that pair unique; lookups that find more than one
match raise `TooManyResults` rather than picking one.

There are no loose objects and no packs on the server side: incoming packs
are inflated and their objects written one by one.
"""

__all__ = [
    "ANY_OBJECT",
    "ITERABLE_TYPES",
    "OBJECT_COLLECTION",
    "ArangoObjectStore",
]

import base64
import binascii
from collections.abc import Callable, Iterable, Iterator
from typing import TYPE_CHECKING, Any, BinaryIO

from dulwich import log_utils
from dulwich.object_store import MemoryObjectStore, PackCapableObjectStore
from dulwich.objects import Blob, Commit, ShaFile, Tag, Tree
from dulwich.pack import DELTA_TYPES, UnpackedObject

from .errors import InvalidObjectType, ObjectNotFound, TooManyResults
from .iterator import ResultIterator

if TYPE_CHECKING:
    from dulwich.pack import Pack

    from .connector import ArangoConnector

logger = log_utils.getLogger(__name__)

OBJECT_COLLECTION = "objects"

# Requests a lookup by hash alone, whatever the type of the object.
ANY_OBJECT = None

STORABLE_TYPES = frozenset(
    [Commit.type_num, Tree.type_num, Blob.type_num, Tag.type_num]
)

# Trees are reached by walking commits, never by scanning the collection.
ITERABLE_TYPES = frozenset([Commit.type_num, Blob.type_num, Tag.type_num])


def _to_hexsha(sha: bytes) -> bytes:
    if len(sha) in (20, 32):
        return binascii.hexlify(sha)
    return sha


def _decode_object(doc: dict[str, Any]) -> ShaFile:
    return ShaFile.from_raw_string(
        doc["type"],
        base64.b64decode(doc["object"]),
        sha=doc["hash"].encode("ascii"),
    )


class _IncomingObjectStore(MemoryObjectStore):
    """Holds the objects of an incoming pack until they are written out.

    Delta bases that are not part of the pack are read from the target
    store, which is what allows thin packs to be completed.
    """

    def __init__(self, target: "ArangoObjectStore") -> None:
        super().__init__()
        self._target = target

    def get_raw(self, name: bytes) -> tuple[int, bytes]:
        try:
            return super().get_raw(name)
        except KeyError:
            return self._target.get_raw(name)

    def flush(self) -> int:
        count = 0
        for sha in self:
            self._target.put_object(self[sha])
            count += 1
        logger.debug("stored %d objects from incoming pack", count)
        return count


class ArangoObjectStore(PackCapableObjectStore):
    """Object store that keeps every object as a document in ArangoDB."""

    def __init__(self, connector: "ArangoConnector") -> None:
        """Open the object store, creating its collection if needed.

        Args:
          connector: An open `ArangoConnector`
        """
        super().__init__()
        self.connector = connector
        self.connector.collection(OBJECT_COLLECTION)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.connector!r})"

    def _read_one(self, sha: bytes, type_num: int | None = ANY_OBJECT) -> dict[str, Any]:
        hexsha = _to_hexsha(sha)
        filters: dict[str, Any] = {"hash": hexsha.decode("ascii")}
        if type_num is not ANY_OBJECT:
            filters["type"] = type_num
        cursor = self.connector.find(OBJECT_COLLECTION, filters, limit=2)
        with ResultIterator(cursor, dict) as docs:
            found = list(docs)
        if not found:
            raise ObjectNotFound(hexsha, type_num)
        if len(found) > 1:
            raise TooManyResults(OBJECT_COLLECTION, filters)
        return found[0]

    def put_object(self, obj: ShaFile) -> bytes:
        """Store an object.

        Storing an object that is already present rewrites the same
        content, so this is safe to retry.

        Args:
          obj: The object to store
        Returns: The hex SHA of the object
        Raises:
          InvalidObjectType: for delta objects or unknown types
        """
        if obj.type_num in DELTA_TYPES or obj.type_num not in STORABLE_TYPES:
            raise InvalidObjectType(obj.type_num)
        sha = obj.id
        self.connector.upsert(
            OBJECT_COLLECTION,
            {"hash": sha.decode("ascii"), "type": obj.type_num},
            {"object": base64.b64encode(obj.as_raw_string()).decode("ascii")},
        )
        return sha

    def get_object(self, sha: bytes, type_num: int | None = ANY_OBJECT) -> ShaFile:
        """Retrieve an object.

        Args:
          sha: SHA of the object, hex or binary
          type_num: Required type, or `ANY_OBJECT` to match any type
        Raises:
          ObjectNotFound: if there is no such object
          TooManyResults: if the object is stored more than once
        """
        return _decode_object(self._read_one(sha, type_num))

    def has_object(self, sha: bytes) -> None:
        """Check that an object with the given SHA exists, of any type.

        Raises:
          ObjectNotFound: if it does not
        """
        self._read_one(sha)

    def object_size(self, sha: bytes) -> int:
        """Return the size of an object's raw contents.

        Returns: The size in bytes, or 0 if the object is not stored.
        """
        try:
            doc = self._read_one(sha)
        except ObjectNotFound:
            return 0
        return len(base64.b64decode(doc["object"]))

    def iter_objects(self, type_num: int) -> ResultIterator[ShaFile]:
        """Iterate over all stored objects of one type.

        Only commits, blobs and tags can be listed; any other type gives an
        empty iterator.

        Args:
          type_num: Type of the objects to list
        Returns: A `ResultIterator`, which should be closed when done
        """
        if type_num not in ITERABLE_TYPES:
            return ResultIterator.empty()
        cursor = self.connector.find(OBJECT_COLLECTION, {"type": type_num})
        return ResultIterator(cursor, _decode_object)

    def contains_loose(self, sha: bytes) -> bool:
        """Check if a particular object is present by SHA1."""
        try:
            self.has_object(sha)
        except ObjectNotFound:
            return False
        return True

    def contains_packed(self, sha: bytes) -> bool:
        """Objects are never packed in this store."""
        return False

    @property
    def packs(self) -> list["Pack"]:
        """This store has no packs."""
        return []

    def get_raw(self, name: bytes) -> tuple[int, bytes]:
        """Obtain the raw text for an object.

        Args:
          name: sha for the object.
        Returns: tuple with numeric type and object contents.
        """
        doc = self._read_one(name)
        return doc["type"], base64.b64decode(doc["object"])

    def __getitem__(self, sha: bytes) -> ShaFile:
        return self.get_object(sha)

    def __iter__(self) -> Iterator[bytes]:
        """Iterate over the SHAs that are present in this store."""
        cursor = self.connector.values(OBJECT_COLLECTION, "hash")
        with ResultIterator(cursor, lambda value: value.encode("ascii")) as shas:
            yield from shas

    def add_object(self, obj: ShaFile) -> None:
        """Add a single object to this object store."""
        self.put_object(obj)

    def add_objects(
        self,
        objects: Iterable[tuple[ShaFile, str | None]],
        progress: Callable[[str], None] | None = None,
    ) -> None:
        """Add a set of objects to this object store.

        Args:
          objects: Iterable over a list of (object, path) tuples
          progress: Optional progress reporting function.
        """
        for obj, path in objects:
            self.put_object(obj)

    def add_pack(self) -> tuple[BinaryIO, Callable[[], None], Callable[[], None]]:
        """Add a new pack to this object store.

        The pack is spooled locally; when it is committed its objects are
        resolved and written to the database individually.

        Returns: Fileobject to write to, a commit function to call when the
            pack is finished and an abort function.
        """
        incoming = _IncomingObjectStore(self)
        f, commit, abort = incoming.add_pack()

        def commit_to_database() -> None:
            commit()
            incoming.flush()

        return f, commit_to_database, abort

    def add_pack_data(
        self,
        count: int,
        unpacked_objects: Iterator[UnpackedObject],
        progress: Callable[[str], None] | None = None,
    ) -> None:
        """Add pack data to this object store.

        Args:
          count: Number of items to add
          unpacked_objects: Iterator of UnpackedObject instances
          progress: Optional progress reporting function.
        """
        if count == 0:
            return
        incoming = _IncomingObjectStore(self)
        incoming.add_pack_data(count, unpacked_objects, progress=progress)
        incoming.flush()

    def add_thin_pack(
        self,
        read_all: Callable[[int], bytes],
        read_some: Callable[[int], bytes] | None,
        progress: Callable[[str], None] | None = None,
    ) -> None:
        """Add a new thin pack to this object store.

        Bases of deltas that are not in the pack are read from the database.

        Args:
          read_all: Read function that blocks until the number of
            requested bytes are read.
          read_some: Read function that returns at least one byte, but may
            not return the number of bytes requested.
          progress: Optional progress reporting function.
        """
        incoming = _IncomingObjectStore(self)
        incoming.add_thin_pack(read_all, read_some, progress=progress)
        incoming.flush()
