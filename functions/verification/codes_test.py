# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from verification import codes

NOW = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)
EMAIL = "teacher@korea.kr"


class GenerateVerificationCodeTest(unittest.TestCase):

    def test_codes_are_six_ascii_digits_in_range(self):
        for _ in range(500):
            code = codes.generate_verification_code()
            self.assertEqual(len(code), 6)
            self.assertTrue(code.isascii() and code.isdigit())
            self.assertTrue(100000 <= int(code) <= 999999)


class VerificationFlowTest(unittest.TestCase):

    def setUp(self):
        self.store = codes.InMemoryVerificationStore()

    def _issue(self, code="424242", now=NOW):
        return codes.issue_code(self.store, EMAIL, now=now, code_generator=lambda: code)

    def test_issue_code_stores_record(self):
        record = self._issue()

        self.assertEqual(record.expires_at, NOW + timedelta(minutes=5))
        self.assertEqual(
            self.store.records[EMAIL],
            {
                "code": "424242",
                "email": EMAIL,
                "expiresAt": NOW + timedelta(minutes=5),
                "createdAt": NOW,
                "verified": False,
            },
        )

    def test_issue_code_replaces_pending_code(self):
        self._issue(code="111111")
        self._issue(code="222222")

        self.assertEqual(self.store.records[EMAIL]["code"], "222222")
        with self.assertRaises(codes.InvalidVerificationCode):
            codes.check_code(self.store, EMAIL, "111111", now=NOW)

    def test_check_code_marks_verified(self):
        self._issue()

        record = codes.check_code(
            self.store, EMAIL, "424242", now=NOW + timedelta(minutes=4)
        )

        self.assertTrue(record.verified)
        self.assertEqual(record.verified_at, NOW + timedelta(minutes=4))
        self.assertTrue(self.store.records[EMAIL]["verified"])
        self.assertEqual(
            self.store.records[EMAIL]["verifiedAt"], NOW + timedelta(minutes=4)
        )

    def test_check_code_succeeds_once(self):
        self._issue()
        codes.check_code(self.store, EMAIL, "424242", now=NOW)

        with self.assertRaises(codes.VerificationAlreadyUsed):
            codes.check_code(self.store, EMAIL, "424242", now=NOW)

    def test_wrong_code_keeps_record_unverified(self):
        self._issue()

        with self.assertRaises(codes.InvalidVerificationCode) as ctx:
            codes.check_code(self.store, EMAIL, "000000", now=NOW)

        self.assertEqual(str(ctx.exception), "Invalid verification code")
        self.assertFalse(self.store.records[EMAIL]["verified"])
        # The right code still works afterwards.
        codes.check_code(self.store, EMAIL, "424242", now=NOW)

    def test_expired_code_is_deleted(self):
        self._issue()

        with self.assertRaises(codes.VerificationExpired):
            codes.check_code(
                self.store, EMAIL, "424242", now=NOW + timedelta(minutes=5, seconds=1)
            )

        self.assertNotIn(EMAIL, self.store.records)
        with self.assertRaises(codes.VerificationNotFound):
            codes.check_code(self.store, EMAIL, "424242", now=NOW)

    def test_code_valid_at_exact_expiry(self):
        self._issue()

        record = codes.check_code(
            self.store, EMAIL, "424242", now=NOW + timedelta(minutes=5)
        )

        self.assertTrue(record.verified)

    def test_check_without_send_is_not_found(self):
        with self.assertRaises(codes.VerificationNotFound):
            codes.check_code(self.store, EMAIL, "424242", now=NOW)

    def test_purge_expired(self):
        codes.issue_code(
            self.store, "old@korea.kr", now=NOW - timedelta(minutes=10)
        )
        codes.issue_code(self.store, "new@korea.kr", now=NOW)

        removed = codes.purge_expired(self.store, now=NOW)

        self.assertEqual(removed, 1)
        self.assertEqual(list(self.store.records), ["new@korea.kr"])


class VerificationRecordTest(unittest.TestCase):

    def test_from_document_treats_naive_datetimes_as_utc(self):
        record = codes.VerificationRecord.from_document(
            {
                "code": "123456",
                "email": EMAIL,
                "expiresAt": datetime(2026, 3, 2, 9, 5),
                "createdAt": datetime(2026, 3, 2, 9, 0),
                "verified": False,
            }
        )

        self.assertEqual(record.expires_at, NOW + timedelta(minutes=5))
        self.assertIsNone(record.verified_at)


class FirestoreVerificationStoreTest(unittest.TestCase):

    def setUp(self):
        self.db = MagicMock()
        self.collection = self.db.collection.return_value
        self.store = codes.FirestoreVerificationStore(self.db)

    def test_uses_email_verifications_collection_keyed_by_email(self):
        self.store.set(EMAIL, {"code": "123456"})

        self.db.collection.assert_called_once_with("email_verifications")
        self.collection.document.assert_called_once_with(EMAIL)
        self.collection.document.return_value.set.assert_called_once_with(
            {"code": "123456"}
        )

    def test_get_missing_document(self):
        self.collection.document.return_value.get.return_value.exists = False

        self.assertIsNone(self.store.get(EMAIL))

    def test_get_existing_document(self):
        snapshot = self.collection.document.return_value.get.return_value
        snapshot.exists = True
        snapshot.to_dict.return_value = {"code": "123456"}

        self.assertEqual(self.store.get(EMAIL), {"code": "123456"})

    def test_list_expired(self):
        expired_doc = MagicMock()
        expired_doc.id = EMAIL
        self.collection.where.return_value.stream.return_value = [expired_doc]

        self.assertEqual(self.store.list_expired(NOW), [EMAIL])
        self.collection.where.assert_called_once()


if __name__ == "__main__":
    unittest.main()
