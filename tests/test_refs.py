# test_refs.py -- Tests for arangit.refs
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

"""Tests for arangit.refs."""

from dulwich.objects import ZERO_SHA

from arangit.errors import ReferenceHasChanged, ReferenceNotFound, TooManyResults
from arangit.refs import REF_COLLECTION, ArangoRefsContainer, Reference

from . import TestCase
from .utils import FakeArangoConnector

ONES = b"1" * 40
TWOS = b"2" * 40
THREES = b"3" * 40
MASTER = b"refs/heads/master"


class ReferenceTests(TestCase):
    def test_hash_reference(self) -> None:
        ref = Reference(MASTER, ONES)
        self.assertFalse(ref.is_symbolic)
        self.assertIsNone(ref.symbolic_target)
        self.assertEqual(ONES, ref.hash)

    def test_symbolic_reference(self) -> None:
        ref = Reference(b"HEAD", b"ref: " + MASTER)
        self.assertTrue(ref.is_symbolic)
        self.assertEqual(MASTER, ref.symbolic_target)
        self.assertEqual(ZERO_SHA, ref.hash)

    def test_strings(self) -> None:
        ref = Reference(MASTER, ONES)
        self.assertEqual(("refs/heads/master", "1" * 40), ref.strings())
        self.assertEqual(ref, Reference.from_strings(*ref.strings()))


class ArangoRefsContainerTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.connector = FakeArangoConnector()
        self.reflog: list[tuple] = []
        self.refs = ArangoRefsContainer(
            self.connector, logger=lambda *args: self.reflog.append(args)
        )

    def assertCursorsClosed(self) -> None:
        self.assertEqual([], self.connector.open_cursors())

    def test_set_and_get(self) -> None:
        self.refs.set_reference(Reference(MASTER, ONES))
        self.assertEqual(Reference(MASTER, ONES), self.refs.get_reference(MASTER))
        self.refs.set_reference(Reference(MASTER, TWOS))
        self.assertEqual(TWOS, self.refs.get_reference(MASTER).target)
        self.assertEqual(1, len(self.connector.collections[REF_COLLECTION]))
        self.assertCursorsClosed()

    def test_get_missing(self) -> None:
        self.assertRaises(ReferenceNotFound, self.refs.get_reference, MASTER)
        self.assertCursorsClosed()

    def test_get_duplicate(self) -> None:
        docs = self.connector.collections[REF_COLLECTION]
        docs.append({"name": "refs/heads/master", "target": "1" * 40})
        docs.append({"name": "refs/heads/master", "target": "2" * 40})
        self.assertRaises(TooManyResults, self.refs.get_reference, MASTER)
        self.assertCursorsClosed()

    def test_check_and_set_unconditional(self) -> None:
        self.refs.check_and_set_reference(Reference(MASTER, ONES))
        self.assertEqual(ONES, self.refs.get_reference(MASTER).target)

    def test_check_and_set_none(self) -> None:
        self.refs.check_and_set_reference(None, Reference(MASTER, ONES))
        self.assertEqual([], self.connector.collections[REF_COLLECTION])

    def test_check_and_set_matching(self) -> None:
        self.refs.set_reference(Reference(MASTER, ONES))
        self.refs.check_and_set_reference(
            Reference(MASTER, TWOS), Reference(MASTER, ONES)
        )
        self.assertEqual(TWOS, self.refs.get_reference(MASTER).target)

    def test_check_and_set_changed(self) -> None:
        self.refs.set_reference(Reference(MASTER, TWOS))
        with self.assertRaises(ReferenceHasChanged) as cm:
            self.refs.check_and_set_reference(
                Reference(MASTER, THREES), Reference(MASTER, ONES)
            )
        self.assertEqual(TWOS, cm.exception.got)
        self.assertEqual(TWOS, self.refs.get_reference(MASTER).target)

    def test_check_and_set_missing(self) -> None:
        self.assertRaises(
            ReferenceNotFound,
            self.refs.check_and_set_reference,
            Reference(MASTER, TWOS),
            Reference(MASTER, ONES),
        )
        self.assertEqual([], self.connector.collections[REF_COLLECTION])

    def test_check_and_set_other_name(self) -> None:
        self.refs.set_reference(Reference(MASTER, ONES))
        self.refs.check_and_set_reference(
            Reference(b"refs/heads/other", ONES), Reference(MASTER, ONES)
        )
        self.assertEqual(ONES, self.refs.get_reference(b"refs/heads/other").target)
        self.assertRaises(
            ReferenceHasChanged,
            self.refs.check_and_set_reference,
            Reference(b"refs/heads/third", ONES),
            Reference(MASTER, TWOS),
        )

    def test_check_and_set_symbolic_target(self) -> None:
        self.refs.set_reference(Reference(b"HEAD", b"ref: refs/heads/a"))
        with self.assertRaises(ReferenceHasChanged) as cm:
            self.refs.check_and_set_reference(
                Reference(b"HEAD", b"ref: refs/heads/c"),
                Reference(b"HEAD", b"ref: refs/heads/b"),
            )
        self.assertEqual(b"ref: refs/heads/a", cm.exception.got)
        self.refs.check_and_set_reference(
            Reference(b"HEAD", b"ref: refs/heads/c"),
            Reference(b"HEAD", b"ref: refs/heads/a"),
        )
        self.assertEqual(
            b"ref: refs/heads/c", self.refs.get_reference(b"HEAD").target
        )

    def test_iter_references(self) -> None:
        self.refs.set_reference(Reference(MASTER, ONES))
        self.refs.set_reference(Reference(b"HEAD", b"ref: " + MASTER))
        with self.refs.iter_references() as refs:
            self.assertEqual(
                {Reference(MASTER, ONES), Reference(b"HEAD", b"ref: " + MASTER)},
                set(refs),
            )
        self.assertCursorsClosed()

    def test_remove_reference(self) -> None:
        self.refs.set_reference(Reference(MASTER, ONES))
        self.refs.remove_reference(MASTER)
        self.assertRaises(ReferenceNotFound, self.refs.get_reference, MASTER)
        self.refs.remove_reference(MASTER)

    def test_count_loose_refs(self) -> None:
        self.assertEqual(0, self.refs.count_loose_refs())
        self.refs.set_reference(Reference(MASTER, ONES))
        self.refs.set_reference(Reference(b"refs/tags/v1", TWOS))
        self.assertEqual(2, self.refs.count_loose_refs())

    def test_pack_refs(self) -> None:
        self.refs.set_reference(Reference(MASTER, ONES))
        self.refs.pack_refs()
        self.assertEqual(1, self.refs.count_loose_refs())
        self.assertEqual({}, self.refs.get_packed_refs())

    def test_dict_interface(self) -> None:
        self.refs[MASTER] = ONES
        self.refs.set_symbolic_ref(b"HEAD", MASTER)
        self.assertEqual(ONES, self.refs[b"HEAD"])
        self.assertEqual({b"HEAD", MASTER}, self.refs.allkeys())
        self.assertIn(MASTER, self.refs)
        self.assertEqual(b"ref: " + MASTER, self.refs.read_loose_ref(b"HEAD"))
        del self.refs[MASTER]
        self.assertNotIn(MASTER, self.refs)
        self.assertIsNone(self.refs.read_loose_ref(MASTER))

    def test_set_if_equals(self) -> None:
        self.refs[MASTER] = ONES
        self.assertFalse(self.refs.set_if_equals(MASTER, TWOS, THREES))
        self.assertEqual(ONES, self.refs[MASTER])
        self.assertTrue(self.refs.set_if_equals(MASTER, ONES, TWOS))
        self.assertEqual(TWOS, self.refs[MASTER])

    def test_set_if_equals_follows_head(self) -> None:
        self.refs[MASTER] = ONES
        self.refs.set_symbolic_ref(b"HEAD", MASTER)
        self.assertTrue(self.refs.set_if_equals(b"HEAD", ONES, TWOS))
        self.assertEqual(TWOS, self.refs.get_reference(MASTER).target)
        self.assertEqual(b"ref: " + MASTER, self.refs.read_loose_ref(b"HEAD"))

    def test_set_if_equals_zero_sha(self) -> None:
        self.assertTrue(self.refs.set_if_equals(MASTER, ZERO_SHA, ONES))
        self.assertFalse(self.refs.set_if_equals(MASTER, ZERO_SHA, TWOS))
        self.assertEqual(ONES, self.refs[MASTER])

    def test_set_if_equals_missing(self) -> None:
        self.assertFalse(self.refs.set_if_equals(MASTER, ONES, TWOS))
        self.assertNotIn(MASTER, self.refs)

    def test_set_if_equals_reflog(self) -> None:
        self.refs.set_if_equals(MASTER, None, ONES, message=b"created")
        self.assertEqual(
            [(MASTER, ZERO_SHA, ONES, None, None, None, b"created")], self.reflog
        )

    def test_add_if_new(self) -> None:
        self.assertTrue(self.refs.add_if_new(MASTER, ONES))
        self.assertFalse(self.refs.add_if_new(MASTER, TWOS))
        self.assertEqual(ONES, self.refs[MASTER])

    def test_remove_if_equals(self) -> None:
        self.refs[MASTER] = ONES
        self.assertFalse(self.refs.remove_if_equals(MASTER, TWOS))
        self.assertIn(MASTER, self.refs)
        self.assertTrue(self.refs.remove_if_equals(MASTER, ONES))
        self.assertNotIn(MASTER, self.refs)

    def test_remove_if_equals_unconditional(self) -> None:
        self.assertTrue(self.refs.remove_if_equals(MASTER, None))
        self.refs[MASTER] = ONES
        self.assertTrue(self.refs.remove_if_equals(MASTER, None))
        self.assertEqual(0, self.refs.count_loose_refs())

    def test_remove_if_equals_zero_sha(self) -> None:
        self.assertTrue(self.refs.remove_if_equals(MASTER, ZERO_SHA))
        self.refs[MASTER] = ONES
        self.assertFalse(self.refs.remove_if_equals(MASTER, ZERO_SHA))

    def test_add_packed_refs(self) -> None:
        self.refs[b"refs/tags/old"] = ONES
        self.refs.add_packed_refs({MASTER: TWOS, b"refs/tags/old": None})
        self.assertEqual({MASTER}, self.refs.allkeys())
