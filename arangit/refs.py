# refs.py -- Git references stored in ArangoDB
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

"""Git references stored in ArangoDB.

Each reference is one document in the ``refs`` collection::

    {"name": "refs/heads/master", "target": "<hex sha>"}
    {"name": "HEAD", "target": "ref: refs/heads/master"}

The target uses the same form as a loose ref file. There is no distinction
between loose and packed refs; every ref is stored the same way.
"""

__all__ = [
    "REF_COLLECTION",
    "ArangoRefsContainer",
    "Reference",
]

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, NamedTuple

from dulwich import log_utils
from dulwich.objects import ZERO_SHA
from dulwich.refs import SYMREF, RefsContainer, SymrefLoop

from .errors import ReferenceHasChanged, ReferenceNotFound, TooManyResults
from .iterator import ResultIterator

if TYPE_CHECKING:
    from .connector import ArangoConnector

logger = log_utils.getLogger(__name__)

REF_COLLECTION = "refs"


class Reference(NamedTuple):
    """A named pointer to an object or to another reference."""

    name: bytes
    target: bytes

    @classmethod
    def from_strings(cls, name: str, target: str) -> "Reference":
        """Create a reference from its stored form."""
        return cls(name.encode("utf-8"), target.encode("utf-8"))

    def strings(self) -> tuple[str, str]:
        """Return the stored form of this reference."""
        return self.name.decode("utf-8"), self.target.decode("utf-8")

    @property
    def is_symbolic(self) -> bool:
        """Whether this reference points at another reference."""
        return self.target.startswith(SYMREF)

    @property
    def symbolic_target(self) -> bytes | None:
        """Name of the reference pointed at, for symbolic references."""
        if not self.is_symbolic:
            return None
        return self.target[len(SYMREF) :]

    @property
    def hash(self) -> bytes:
        """SHA pointed at; the zero SHA for symbolic references."""
        if self.is_symbolic:
            return ZERO_SHA
        return self.target


def _decode_reference(doc: dict[str, Any]) -> Reference:
    return Reference.from_strings(doc["name"], doc["target"])


class ArangoRefsContainer(RefsContainer):
    """Refs container that keeps every ref as a document in ArangoDB."""

    def __init__(
        self,
        connector: "ArangoConnector",
        logger: Callable[..., None] | None = None,
    ) -> None:
        """Open the refs container, creating its collection if needed.

        Args:
          connector: An open `ArangoConnector`
          logger: Optional reflog callback, see `RefsContainer`
        """
        super().__init__(logger=logger)
        self.connector = connector
        self.connector.collection(REF_COLLECTION)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.connector!r})"

    def set_reference(self, ref: Reference) -> None:
        """Store a reference, replacing any existing value."""
        name, target = ref.strings()
        self.connector.upsert(REF_COLLECTION, {"name": name}, {"target": target})

    def check_and_set_reference(
        self, new: Reference | None, old: Reference | None = None
    ) -> None:
        """Store ``new``, provided ``old`` is still the stored value.

        When ``old`` names the same reference as ``new`` the comparison and
        the write are one conditional update on the server. When the names
        differ, the current value of ``old`` is read and compared first; a
        concurrent writer can change it between that read and the write.

        Stored and expected values are compared on their full target, not
        on the resolved hash, so two symbolic references to different
        branches do not match even though both have the zero hash.

        Args:
          new: The reference to store; nothing happens if None
          old: The value expected for ``old.name``, or None to store
            unconditionally
        Raises:
          ReferenceNotFound: if ``old.name`` does not exist
          ReferenceHasChanged: if ``old.name`` has a different target
        """
        if new is None:
            return
        if old is None:
            self.set_reference(new)
            return
        old_name, old_target = old.strings()
        if old.name == new.name:
            updated = self.connector.update(
                REF_COLLECTION,
                {"name": old_name, "target": old_target},
                {"target": new.strings()[1]},
            )
            if updated:
                return
            current = self.get_reference(old.name)
            raise ReferenceHasChanged(old.name, old.target, current.target)
        current = self.get_reference(old.name)
        if current.target != old.target:
            raise ReferenceHasChanged(old.name, old.target, current.target)
        self.set_reference(new)

    def get_reference(self, name: bytes) -> Reference:
        """Read a reference without following it.

        Raises:
          ReferenceNotFound: if there is no such reference
          TooManyResults: if several documents share the name
        """
        filters = {"name": name.decode("utf-8")}
        cursor = self.connector.find(REF_COLLECTION, filters, limit=2)
        with ResultIterator(cursor, _decode_reference) as refs:
            found = list(refs)
        if not found:
            raise ReferenceNotFound(name)
        if len(found) > 1:
            raise TooManyResults(REF_COLLECTION, filters)
        return found[0]

    def iter_references(self) -> ResultIterator[Reference]:
        """Iterate over all references, in no particular order.

        Returns: A `ResultIterator`, which should be closed when done
        """
        return ResultIterator(
            self.connector.find(REF_COLLECTION), _decode_reference
        )

    def remove_reference(self, name: bytes) -> None:
        """Remove a reference; removing a missing reference is not an error."""
        self.connector.remove(REF_COLLECTION, {"name": name.decode("utf-8")})

    def count_loose_refs(self) -> int:
        """Return the number of references, all of which count as loose."""
        return self.connector.count(REF_COLLECTION)

    def pack_refs(self, all: bool = False) -> None:
        """Nothing to do; refs are never packed."""

    def allkeys(self) -> set[bytes]:
        """All refs present in this container."""
        with self.iter_references() as refs:
            return {ref.name for ref in refs}

    def read_loose_ref(self, name: bytes) -> bytes | None:
        """Read a reference and return its stored value.

        Args:
          name: the refname to read
        Returns: The target of the ref, or None if it does not exist.
        """
        try:
            return self.get_reference(name).target
        except ReferenceNotFound:
            return None

    def get_packed_refs(self) -> dict[bytes, bytes]:
        """There are no packed refs."""
        return {}

    def add_packed_refs(self, new_refs: Mapping[bytes, bytes | None]) -> None:
        """Store refs that would have gone to packed-refs like any other ref.

        Args:
          new_refs: A mapping of ref names to targets; if a target is None that
            means remove the ref
        """
        for name, target in new_refs.items():
            if target is None:
                self.remove_reference(name)
            else:
                self.set_reference(Reference(name, target))

    def set_symbolic_ref(
        self,
        name: bytes,
        other: bytes,
        committer: bytes | None = None,
        timestamp: int | None = None,
        timezone: int | None = None,
        message: bytes | None = None,
    ) -> None:
        """Make a ref point at another ref.

        Args:
          name: Name of the ref to set
          other: Name of the ref to point at
          committer: Optional committer name
          timestamp: Optional timestamp
          timezone: Optional timezone
          message: Optional message to describe the change
        """
        self._check_refname(name)
        self._check_refname(other)
        old = self.read_loose_ref(name)
        new = SYMREF + other
        self.set_reference(Reference(name, new))
        self._log(
            name,
            old,
            new,
            committer=committer,
            timestamp=timestamp,
            timezone=timezone,
            message=message,
        )

    def set_if_equals(
        self,
        name: bytes,
        old_ref: bytes | None,
        new_ref: bytes,
        committer: bytes | None = None,
        timestamp: int | None = None,
        timezone: int | None = None,
        message: bytes | None = None,
    ) -> bool:
        """Set a refname to new_ref only if it currently equals old_ref.

        This method follows all symbolic references. Passing `ZERO_SHA` as
        ``old_ref`` requires the ref to not exist yet.

        Args:
          name: The refname to set.
          old_ref: The old sha the refname must refer to, or None to set
            unconditionally.
          new_ref: The new sha the refname will refer to.
          committer: Optional committer name
          timestamp: Optional timestamp
          timezone: Optional timezone
          message: Set message for reflog
        Returns: True if the set was successful, False otherwise.
        """
        self._check_refname(name)
        try:
            realnames, _ = self.follow(name)
            realname = realnames[-1]
        except (KeyError, IndexError, SymrefLoop):
            realname = name
        new = Reference(realname, new_ref)
        if old_ref == ZERO_SHA:
            if not self._insert_if_absent(new):
                return False
        else:
            old = None if old_ref is None else Reference(realname, old_ref)
            try:
                self.check_and_set_reference(new, old)
            except (ReferenceHasChanged, ReferenceNotFound) as exc:
                logger.debug("not updating %r: %s", realname, exc)
                return False
        self._log(
            realname,
            old_ref,
            new_ref,
            committer=committer,
            timestamp=timestamp,
            timezone=timezone,
            message=message,
        )
        return True

    def _insert_if_absent(self, ref: Reference) -> bool:
        name, target = ref.strings()
        return self.connector.insert_if_absent(
            REF_COLLECTION, {"name": name}, {"target": target}
        )

    def add_if_new(
        self,
        name: bytes,
        ref: bytes,
        committer: bytes | None = None,
        timestamp: int | None = None,
        timezone: int | None = None,
        message: bytes | None = None,
    ) -> bool:
        """Add a new reference only if it does not already exist.

        Args:
          name: Ref name
          ref: Ref value
          committer: Optional committer name
          timestamp: Optional timestamp
          timezone: Optional timezone
          message: Optional message for reflog
        Returns: True if the add was successful, False otherwise.
        """
        self._check_refname(name)
        if not self._insert_if_absent(Reference(name, ref)):
            return False
        self._log(
            name,
            None,
            ref,
            committer=committer,
            timestamp=timestamp,
            timezone=timezone,
            message=message,
        )
        return True

    def remove_if_equals(
        self,
        name: bytes,
        old_ref: bytes | None,
        committer: bytes | None = None,
        timestamp: int | None = None,
        timezone: int | None = None,
        message: bytes | None = None,
    ) -> bool:
        """Remove a refname only if it currently equals old_ref.

        This method does not follow symbolic references. The comparison and
        the removal are a single query.

        Args:
          name: The refname to delete.
          old_ref: The old sha the refname must refer to, or None to
            delete unconditionally.
          committer: Optional committer name
          timestamp: Optional timestamp
          timezone: Optional timezone
          message: Optional message
        Returns: True if the delete was successful, False otherwise.
        """
        self._check_refname(name)
        if old_ref == ZERO_SHA:
            return self.read_loose_ref(name) is None
        filters = {"name": name.decode("utf-8")}
        if old_ref is not None:
            filters["target"] = old_ref.decode("utf-8")
        removed = self.connector.remove(REF_COLLECTION, filters)
        if old_ref is not None and not removed:
            return False
        if removed:
            self._log(
                name,
                old_ref,
                None,
                committer=committer,
                timestamp=timestamp,
                timezone=timezone,
                message=message,
            )
        return True
