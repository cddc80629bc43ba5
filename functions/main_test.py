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

# Standard library imports
import os
import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

# Third-party library imports
from functions_framework import create_app

# Local application imports
# This patch must be applied before importing 'main'
with patch("firebase_admin.initialize_app"):
    import main  # noqa: F401
from verification import codes

MAIN_SOURCE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "main.py")


class TestMainSendVerificationEmail(unittest.TestCase):

    @patch("firebase_admin.initialize_app")
    def setUp(self, initialize_app_mock):
        self.client = create_app("send_verification_email", MAIN_SOURCE).test_client()
        self.store = codes.InMemoryVerificationStore()

    @patch("main.slack")
    @patch("main.email_sender")
    @patch("main._get_verification_store")
    def test_send_verification_email(self, mock_get_store, mock_sender, mock_slack):
        # Arrange
        mock_get_store.return_value = self.store

        # Act
        response = self.client.post(
            "/", json={"data": {"email": "teacher@korea.kr"}}
        )

        # Assert
        self.assertEqual(
            response.status_code,
            200,
            f"Request failed with status {response.status_code}. Body: {response.get_data(as_text=True)}",
        )
        result = response.get_json()["result"]
        self.assertTrue(result["success"])
        self.assertNotIn("code", result)

        stored = self.store.records["teacher@korea.kr"]
        self.assertEqual(stored["email"], "teacher@korea.kr")
        self.assertFalse(stored["verified"])
        self.assertEqual(stored["expiresAt"] - stored["createdAt"], timedelta(minutes=5))

        mock_sender.send_verification_email.assert_called_once()
        args, _ = mock_sender.send_verification_email.call_args
        self.assertEqual(args, ("teacher@korea.kr", stored["code"]))
        mock_slack.send_error_alert.assert_not_called()

    def test_send_verification_email_requires_email(self):
        # Act
        response = self.client.post("/", json={"data": {}})

        # Assert
        self.assertEqual(response.status_code, 400)
        error = response.get_json()["error"]
        self.assertEqual(error["status"], "INVALID_ARGUMENT")
        self.assertEqual(error["message"], "Email is required")

    def test_send_verification_email_rejects_malformed_email(self):
        response = self.client.post("/", json={"data": {"email": "not-an-email"}})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"]["status"], "INVALID_ARGUMENT")

    @patch("main.slack")
    @patch("main.email_sender")
    @patch("main._get_verification_store")
    def test_send_verification_email_delivery_failure(
        self, mock_get_store, mock_sender, mock_slack
    ):
        # Arrange: The email provider rejects the request.
        mock_get_store.return_value = self.store
        mock_sender.send_verification_email.side_effect = RuntimeError("resend down")

        # Act
        response = self.client.post(
            "/", json={"data": {"email": "teacher@korea.kr"}}
        )

        # Assert
        self.assertEqual(response.status_code, 500)
        error = response.get_json()["error"]
        self.assertEqual(error["status"], "INTERNAL")
        self.assertEqual(error["message"], "Failed to send verification email")
        mock_slack.send_error_alert.assert_called_once()
        self.assertEqual(
            mock_slack.send_error_alert.call_args.args[0], "send_verification_email"
        )


class TestMainVerifyEmailCode(unittest.TestCase):

    @patch("firebase_admin.initialize_app")
    def setUp(self, initialize_app_mock):
        self.client = create_app("verify_email_code", MAIN_SOURCE).test_client()
        self.store = codes.InMemoryVerificationStore()
        self.email = "teacher@korea.kr"

    def _issue(self, code="123456", now=None):
        return codes.issue_code(
            self.store, self.email, now=now, code_generator=lambda: code
        )

    @patch("main.slack")
    @patch("main._get_verification_store")
    def test_verify_email_code_success(self, mock_get_store, mock_slack):
        # Arrange
        mock_get_store.return_value = self.store
        self._issue()

        # Act
        response = self.client.post(
            "/", json={"data": {"email": self.email, "code": "123456"}}
        )

        # Assert
        self.assertEqual(
            response.status_code,
            200,
            f"Request failed with status {response.status_code}. Body: {response.get_data(as_text=True)}",
        )
        self.assertTrue(response.get_json()["result"]["success"])
        self.assertTrue(self.store.records[self.email]["verified"])
        self.assertIn("verifiedAt", self.store.records[self.email])
        mock_slack.send_error_alert.assert_not_called()

    @patch("main.slack")
    @patch("main._get_verification_store")
    def test_verify_email_code_only_once(self, mock_get_store, mock_slack):
        mock_get_store.return_value = self.store
        self._issue()
        payload = {"data": {"email": self.email, "code": "123456"}}

        first = self.client.post("/", json=payload)
        second = self.client.post("/", json=payload)

        self.assertEqual(first.status_code, 200)
        self.assertEqual(second.status_code, 400)
        self.assertEqual(second.get_json()["error"]["status"], "FAILED_PRECONDITION")

    @patch("main.slack")
    @patch("main._get_verification_store")
    def test_verify_email_code_wrong_code(self, mock_get_store, mock_slack):
        # Arrange
        mock_get_store.return_value = self.store
        self._issue()

        # Act
        response = self.client.post(
            "/", json={"data": {"email": self.email, "code": "654321"}}
        )

        # Assert
        self.assertEqual(response.status_code, 400)
        error = response.get_json()["error"]
        self.assertEqual(error["status"], "INVALID_ARGUMENT")
        self.assertEqual(error["message"], "Invalid verification code")
        self.assertFalse(self.store.records[self.email]["verified"])
        mock_slack.send_error_alert.assert_not_called()

    @patch("main.slack")
    @patch("main._get_verification_store")
    def test_verify_email_code_not_found(self, mock_get_store, mock_slack):
        mock_get_store.return_value = self.store

        response = self.client.post(
            "/", json={"data": {"email": self.email, "code": "123456"}}
        )

        self.assertEqual(response.status_code, 404)
        error = response.get_json()["error"]
        self.assertEqual(error["status"], "NOT_FOUND")
        self.assertEqual(error["message"], "Verification code not found")
        mock_slack.send_error_alert.assert_not_called()

    @patch("main.slack")
    @patch("main._get_verification_store")
    def test_verify_email_code_expired(self, mock_get_store, mock_slack):
        # Arrange: Issue a code six minutes ago.
        mock_get_store.return_value = self.store
        self._issue(now=datetime.now(timezone.utc) - timedelta(minutes=6))

        # Act
        response = self.client.post(
            "/", json={"data": {"email": self.email, "code": "123456"}}
        )

        # Assert
        self.assertEqual(response.status_code, 504)
        error = response.get_json()["error"]
        self.assertEqual(error["status"], "DEADLINE_EXCEEDED")
        self.assertEqual(error["message"], "Verification code expired")
        self.assertNotIn(self.email, self.store.records)
        mock_slack.send_error_alert.assert_called_once()

    @patch("main.slack")
    @patch("main.codes.check_code")
    @patch("main._get_verification_store")
    def test_verify_email_code_store_failure(
        self, mock_get_store, mock_check_code, mock_slack
    ):
        # Arrange: The store raises with internal details.
        mock_get_store.return_value = self.store
        mock_check_code.side_effect = RuntimeError("permission denied on projects/wally")

        # Act
        response = self.client.post(
            "/", json={"data": {"email": self.email, "code": "123456"}}
        )

        # Assert
        self.assertEqual(response.status_code, 500)
        error = response.get_json()["error"]
        self.assertEqual(error["status"], "INTERNAL")
        self.assertEqual(error["message"], "Failed to verify code")
        self.assertNotIn("projects/wally", response.get_data(as_text=True))
        mock_slack.send_error_alert.assert_called_once()

    def test_verify_email_code_requires_email_and_code(self):
        response = self.client.post("/", json={"data": {"email": self.email}})

        self.assertEqual(response.status_code, 400)
        error = response.get_json()["error"]
        self.assertEqual(error["status"], "INVALID_ARGUMENT")
        self.assertEqual(error["message"], "Email and code are required")


if __name__ == "__main__":
    unittest.main()
