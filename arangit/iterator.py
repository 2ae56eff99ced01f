# iterator.py -- Lazy iteration over server-side query cursors
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

"""Lazy iteration over server-side query cursors.

Query results are fetched from the database in batches while they are
consumed. The cursor holding the remaining batches lives on the server
until it is closed, so every `ResultIterator` closes it as soon as the
results are exhausted or fetching or decoding a document fails. It is
also closed when `for_each` returns and when a ``with`` block exits.
"""

__all__ = [
    "ResultIterator",
    "StopForEach",
]

import types
from collections.abc import Callable, Iterator
from typing import Any, Generic, Protocol, TypeVar

T = TypeVar("T")


class StopForEach(Exception):
    """Raised by a `for_each` callback to end the iteration early."""


class Cursor(Protocol):
    """The parts of a python-arango cursor that are used here."""

    def __iter__(self) -> Iterator[Any]:
        """Iterate over the documents in the cursor."""
        ...

    def __next__(self) -> Any:
        """Fetch the next document."""
        ...

    def close(self, ignore_missing: bool = False) -> bool | None:
        """Release the cursor on the server."""
        ...


class ResultIterator(Generic[T]):
    """Single-pass iterator over the documents of a query.

    Each document is passed through ``decode`` before it is returned. Once
    the iterator has been closed or exhausted it yields nothing more; a new
    query is needed to iterate again.
    """

    def __init__(
        self, cursor: Cursor | None, decode: Callable[[Any], T]
    ) -> None:
        """Wrap a cursor.

        Args:
          cursor: Server-side cursor, or None for an empty result
          decode: Function converting a fetched document into an item
        """
        self._cursor = cursor
        self._decode = decode

    @classmethod
    def empty(cls) -> "ResultIterator[Any]":
        """Return an iterator without any results."""
        return cls(None, lambda doc: doc)

    @property
    def closed(self) -> bool:
        """Whether the underlying cursor has been released."""
        return self._cursor is None

    def __iter__(self) -> "ResultIterator[T]":
        return self

    def __next__(self) -> T:
        if self._cursor is None:
            raise StopIteration
        try:
            return self._decode(next(self._cursor))
        except BaseException:
            self.close()
            raise

    def for_each(self, callback: Callable[[T], object]) -> None:
        """Call ``callback`` for every remaining item.

        Iteration ends without error when the results run out or when
        ``callback`` raises `StopForEach`. Any other exception raised by
        ``callback`` or by fetching propagates. The cursor is closed in all
        cases.

        Args:
          callback: Function to call with each item
        """
        try:
            for item in self:
                callback(item)
        except StopForEach:
            pass
        finally:
            self.close()

    def close(self) -> None:
        """Release the server-side cursor.

        Calling this more than once is harmless.
        """
        cursor = self._cursor
        if cursor is None:
            return
        self._cursor = None
        cursor.close(ignore_missing=True)

    def __enter__(self) -> "ResultIterator[T]":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        self.close()
