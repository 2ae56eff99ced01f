# utils.py -- Test utilities for arangit
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

"""In-memory stand-ins for the ArangoDB connector and its cursors."""

import copy
import itertools
from collections.abc import Iterable, Mapping
from typing import Any

from dulwich.objects import Commit, Tree

from arangit.errors import DatabaseNotFound


def make_commit(tree: Tree, message: bytes = b"Commit") -> Commit:
    commit = Commit()
    commit.tree = tree.id
    commit.author = commit.committer = b"Jane Doe <jane@example.com>"
    commit.author_time = commit.commit_time = 1700000000
    commit.author_timezone = commit.commit_timezone = 0
    commit.message = message
    return commit


class FakeCursor:
    """A cursor over a fixed list of documents that records closes."""

    def __init__(self, docs: Iterable[Any] = ()) -> None:
        self._docs = iter(list(docs))
        self.close_count = 0

    def __iter__(self) -> "FakeCursor":
        return self

    def __next__(self) -> Any:
        return next(self._docs)

    def close(self, ignore_missing: bool = False) -> bool:
        self.close_count += 1
        return True


def _matches(doc: Mapping[str, Any], filters: Mapping[str, Any]) -> bool:
    return all(doc.get(field) == value for field, value in filters.items())


class FakeArangoConnector:
    """Keeps collections as lists of documents in memory.

    Every cursor handed out is kept in ``cursors`` so tests can check that
    all of them were closed.
    """

    def __init__(self, database_name: str = "fakerepo", exists: bool = True) -> None:
        self.database_name = database_name
        self.exists = exists
        self.collections: dict[str, list[dict[str, Any]]] = {}
        self.cursors: list[FakeCursor] = []
        self.closed = False
        self._keys = itertools.count(1)

    def __repr__(self) -> str:
        return f"FakeArangoConnector({self.database_name!r})"

    def open(self, create: bool = True) -> bool:
        if self.exists:
            return False
        if not create:
            raise DatabaseNotFound(self.database_name)
        self.exists = True
        return True

    def close(self) -> None:
        self.closed = True

    def collection(self, name: str) -> list[dict[str, Any]]:
        return self.collections.setdefault(name, [])

    def _cursor(self, docs: Iterable[Any]) -> FakeCursor:
        cursor = FakeCursor(docs)
        self.cursors.append(cursor)
        return cursor

    def open_cursors(self) -> list[FakeCursor]:
        return [c for c in self.cursors if c.close_count == 0]

    def find(
        self,
        collection: str,
        filters: Mapping[str, Any] | None = None,
        limit: int | None = None,
    ) -> FakeCursor:
        docs = [
            copy.deepcopy(doc)
            for doc in self.collection(collection)
            if _matches(doc, filters or {})
        ]
        if limit is not None:
            docs = docs[:limit]
        return self._cursor(docs)

    def values(self, collection: str, field: str) -> FakeCursor:
        seen = []
        for doc in self.collection(collection):
            if doc.get(field) not in seen:
                seen.append(doc.get(field))
        return self._cursor(seen)

    def count(self, collection: str) -> int:
        return len(self.collection(collection))

    def _insert(self, collection: str, doc: dict[str, Any]) -> None:
        doc.setdefault("_key", str(next(self._keys)))
        self.collection(collection).append(doc)

    def upsert(
        self,
        collection: str,
        match: Mapping[str, Any],
        values: Mapping[str, Any],
    ) -> None:
        for doc in self.collection(collection):
            if _matches(doc, match):
                doc.update(copy.deepcopy(dict(values)))
                return
        self._insert(collection, {**match, **copy.deepcopy(dict(values))})

    def insert_if_absent(
        self,
        collection: str,
        match: Mapping[str, Any],
        values: Mapping[str, Any],
    ) -> bool:
        for doc in self.collection(collection):
            if _matches(doc, match):
                return False
        self._insert(collection, {**match, **copy.deepcopy(dict(values))})
        return True

    def update(
        self,
        collection: str,
        filters: Mapping[str, Any],
        values: Mapping[str, Any],
    ) -> int:
        updated = 0
        for doc in self.collection(collection):
            if _matches(doc, filters):
                doc.update(copy.deepcopy(dict(values)))
                updated += 1
        return updated

    def remove(self, collection: str, filters: Mapping[str, Any]) -> int:
        docs = self.collection(collection)
        kept = [doc for doc in docs if not _matches(doc, filters)]
        removed = len(docs) - len(kept)
        docs[:] = kept
        return removed

    def get_document(self, collection: str, key: str) -> dict[str, Any] | None:
        for doc in self.collection(collection):
            if doc.get("_key") == key:
                return copy.deepcopy(doc)
        return None
