# errors.py -- Exceptions raised by the ArangoDB storage backend
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

"""Arangit-related exception classes.

Errors raised by python-arango itself (connection failures, rejected
queries) are not wrapped and reach the caller unchanged.
"""

__all__ = [
    "DatabaseNotFound",
    "InvalidObjectType",
    "ObjectNotFound",
    "ReferenceHasChanged",
    "ReferenceNotFound",
    "TooManyResults",
]


class ObjectNotFound(KeyError):
    """Indicates that no object with the requested sha is stored."""

    def __init__(self, sha: bytes, type_num: int | None = None) -> None:
        """Initialize an ObjectNotFound exception.

        Args:
            sha: The hex SHA that was looked up.
            type_num: The object type that was requested, if any.
        """
        self.sha = sha
        self.type_num = type_num
        KeyError.__init__(self, sha)

    def __str__(self) -> str:
        if self.type_num is None:
            return f"object {self.sha.decode('ascii')} not found"
        return (
            f"object {self.sha.decode('ascii')} of type {self.type_num} not found"
        )


class ReferenceNotFound(KeyError):
    """Indicates that the requested reference does not exist."""

    def __init__(self, name: bytes) -> None:
        """Initialize a ReferenceNotFound exception.

        Args:
            name: The reference name that was looked up.
        """
        self.name = name
        KeyError.__init__(self, name)

    def __str__(self) -> str:
        return f"reference {self.name.decode('utf-8', 'replace')} not found"


class ReferenceHasChanged(Exception):
    """A compare-and-swap on a reference found an unexpected value."""

    def __init__(
        self, name: bytes, expected: bytes, got: bytes | None = None
    ) -> None:
        """Initialize a ReferenceHasChanged exception.

        Args:
            name: The reference that was being updated.
            expected: The value the caller expected to replace.
            got: The value actually stored, if it was read.
        """
        self.name = name
        self.expected = expected
        self.got = got
        message = f"reference {name.decode('utf-8', 'replace')} has changed"
        if got is not None:
            message += f": expected {expected!r}, got {got!r}"
        Exception.__init__(self, message)


class InvalidObjectType(Exception):
    """An object of a type that can not be stored was submitted."""

    def __init__(self, type_num: int) -> None:
        """Initialize an InvalidObjectType exception.

        Args:
            type_num: The rejected type number.
        """
        self.type_num = type_num
        Exception.__init__(self, f"invalid object type {type_num}")


class DatabaseNotFound(LookupError):
    """The database holding a repository does not exist."""

    def __init__(self, database_name: str) -> None:
        """Initialize a DatabaseNotFound exception.

        Args:
            database_name: Name of the missing database.
        """
        self.database_name = database_name
        LookupError.__init__(self, f"database {database_name} does not exist")


class TooManyResults(Exception):
    """A lookup on a key that should be unique matched several documents.

    This means the collection is inconsistent; callers should not try to
    pick one of the matches.
    """

    def __init__(self, collection: str, key: dict[str, object]) -> None:
        """Initialize a TooManyResults exception.

        Args:
            collection: Name of the collection that was queried.
            key: The filter that matched more than one document.
        """
        self.collection = collection
        self.key = key
        Exception.__init__(self, f"too many results in {collection} for {key!r}")
