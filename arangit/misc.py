# misc.py -- Repository metadata stored in ArangoDB
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

"""Repository metadata stored in ArangoDB.

The ``misc`` collection holds one document per well-known key. Each value is
replaced wholesale when written, and reading a key that was never written
returns an empty value instead of failing.
"""

__all__ = [
    "CONFIG_KEY",
    "DESCRIPTION_KEY",
    "INDEX_KEY",
    "MISC_COLLECTION",
    "SHALLOW_KEY",
    "MiscStore",
]

import base64
import json
from collections.abc import Iterable
from io import BytesIO
from typing import TYPE_CHECKING, Any

from dulwich.config import ConfigFile

if TYPE_CHECKING:
    from .connector import ArangoConnector

MISC_COLLECTION = "misc"

SHALLOW_KEY = "shallow-key"
INDEX_KEY = "index-key"
CONFIG_KEY = "config-key"
DESCRIPTION_KEY = "description-key"


class MiscStore:
    """Key/value slots for the shallow list, index, config and description."""

    def __init__(self, connector: "ArangoConnector") -> None:
        self.connector = connector
        self.connector.collection(MISC_COLLECTION)

    def _set(self, key: str, field: str, value: Any) -> None:
        self.connector.upsert(MISC_COLLECTION, {"_key": key}, {field: value})

    def _get(self, key: str, field: str) -> Any:
        doc = self.connector.get_document(MISC_COLLECTION, key)
        if doc is None:
            return None
        return doc.get(field)

    def shallow(self) -> set[bytes]:
        """Return the set of shallow commits."""
        value = self._get(SHALLOW_KEY, "shallow")
        if not value:
            return set()
        return {sha.encode("ascii") for sha in json.loads(value)}

    def set_shallow(self, shas: Iterable[bytes]) -> None:
        """Replace the set of shallow commits."""
        value = json.dumps(sorted(sha.decode("ascii") for sha in shas))
        self._set(SHALLOW_KEY, "shallow", value)

    def index(self) -> bytes:
        """Return the stored index data, or an empty string."""
        value = self._get(INDEX_KEY, "idx")
        if not value:
            return b""
        return base64.b64decode(value)

    def set_index(self, data: bytes) -> None:
        """Replace the stored index data."""
        self._set(INDEX_KEY, "idx", base64.b64encode(data).decode("ascii"))

    def config(self) -> ConfigFile:
        """Return the repository configuration.

        A new, empty `ConfigFile` is returned when none has been stored.
        """
        value = self._get(CONFIG_KEY, "config")
        if value is None:
            return ConfigFile()
        return ConfigFile.from_file(BytesIO(value.encode("utf-8")))

    def set_config(self, config: ConfigFile) -> None:
        """Replace the repository configuration."""
        f = BytesIO()
        config.write_to_file(f)
        self._set(CONFIG_KEY, "config", f.getvalue().decode("utf-8"))

    def description(self) -> bytes | None:
        """Return the repository description, if one was set."""
        value = self._get(DESCRIPTION_KEY, "description")
        if value is None:
            return None
        return value.encode("utf-8")

    def set_description(self, description: bytes) -> None:
        """Replace the repository description."""
        self._set(DESCRIPTION_KEY, "description", description.decode("utf-8"))
