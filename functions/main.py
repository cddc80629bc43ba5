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

# Cloud functions for the Wally backend - teacher email verification.
#
# This file containing Python cloud functions must be named main.py.
# See https://cloud.google.com/run/docs/write-functions#python for more info.

# Standard library imports
import os
from dataclasses import asdict
from datetime import datetime, timezone

# Third-party library imports
from dacite import Config, from_dict
from firebase_admin import initialize_app, firestore
from firebase_functions import https_fn, logger, options

# Local application imports
from notifications import email_sender, slack
from shared.api import (
    SendVerificationEmailRequest,
    VerificationResult,
    VerifyEmailCodeRequest,
)
from shared.firebase_constants import WALLY_DATABASE_ID
from shared.validation import EMAIL_PATTERN
from verification import codes

# Flow errors that are expected user mistakes and do not page anyone.
QUIET_ERROR_CODES = (
    https_fn.FunctionsErrorCode.INVALID_ARGUMENT,
    https_fn.FunctionsErrorCode.NOT_FOUND,
)

if os.environ.get("FUNCTION_RUN_MODE") == "testing":
    _testing_store = codes.InMemoryVerificationStore()

initialize_app()


def _is_testing() -> bool:
    return os.environ.get("FUNCTION_RUN_MODE") == "testing"


def _get_verification_store() -> codes.VerificationStore:
    """Returns the store for verification records."""
    if _is_testing():
        return _testing_store
    database_id = os.environ.get("FIRESTORE_DATABASE_ID", WALLY_DATABASE_ID)
    return codes.FirestoreVerificationStore(firestore.client(database_id=database_id))


def _report_error(function_name: str, error: Exception, context: dict) -> None:
    context = {**context, "timestamp": datetime.now(timezone.utc).isoformat()}
    slack.send_error_alert(
        function_name,
        error,
        context,
        webhook_url=os.environ.get("SLACK_WEBHOOK_URL"),
    )


def _clean_email(email) -> str | None:
    if not isinstance(email, str):
        return None
    return email.strip() or None


def _deliver_code(email: str, code: str) -> None:
    if _is_testing():
        logger.info(f"Skipping verification email for {email} in testing mode")
        return
    email_sender.send_verification_email(
        email,
        code,
        api_key=os.environ.get("RESEND_API_KEY"),
        sender=os.environ.get(
            "VERIFICATION_EMAIL_SENDER", email_sender.DEFAULT_SENDER
        ),
        recipient_override=os.environ.get("VERIFICATION_EMAIL_RECIPIENT"),
    )


@https_fn.on_call(memory=options.MemoryOption.MB_256)
def send_verification_email(req: https_fn.CallableRequest) -> dict:
    """
    Issues a 6-digit verification code for an email and sends it by email.

    Args:
        req (https_fn.CallableRequest): The request, containing the email.

    Returns:
        A dictionary representation of the VerificationResult object.
    """
    request = from_dict(
        SendVerificationEmailRequest,
        req.data or {},
        config=Config(check_types=False),
    )
    email = _clean_email(request.email)

    if not email:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.INVALID_ARGUMENT, "Email is required"
        )
    if not EMAIL_PATTERN.fullmatch(email):
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.INVALID_ARGUMENT, "Invalid email address"
        )

    try:
        record = codes.issue_code(_get_verification_store(), email)
        _deliver_code(email, record.code)
    except Exception as e:
        logger.error(f"EMAIL_SEND_ERROR for {email}: {e}")
        _report_error("send_verification_email", e, {"email": email})
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.INTERNAL,
            "Failed to send verification email",
        )

    result = VerificationResult(
        success=True, message="A verification code has been sent by email."
    )
    return asdict(result)


def _check_code(email: str, code: str) -> None:
    """Runs the check and translates flow errors into callable errors."""
    try:
        codes.check_code(_get_verification_store(), email, code)
    except codes.VerificationNotFound as e:
        raise https_fn.HttpsError(https_fn.FunctionsErrorCode.NOT_FOUND, str(e))
    except codes.VerificationExpired as e:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.DEADLINE_EXCEEDED, str(e)
        )
    except codes.VerificationAlreadyUsed as e:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.FAILED_PRECONDITION, str(e)
        )
    except codes.InvalidVerificationCode as e:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.INVALID_ARGUMENT, str(e)
        )
    except Exception as e:
        logger.error(f"CODE_CHECK_ERROR for {email}: {e}")
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.INTERNAL, "Failed to verify code"
        )


@https_fn.on_call(memory=options.MemoryOption.MB_256)
def verify_email_code(req: https_fn.CallableRequest) -> dict:
    """
    Verifies a code issued by send_verification_email.

    Args:
        req (https_fn.CallableRequest): The request, containing email and code.

    Returns:
        A dictionary representation of the VerificationResult object.
    """
    request = from_dict(
        VerifyEmailCodeRequest,
        req.data or {},
        config=Config(check_types=False),
    )
    email = _clean_email(request.email)
    code = str(request.code).strip() if request.code is not None else ""

    if not email or not code:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.INVALID_ARGUMENT,
            "Email and code are required",
        )

    try:
        _check_code(email, code)
    except https_fn.HttpsError as e:
        logger.error(f"Verification failed for {email}: {e.message}")
        if e.code not in QUIET_ERROR_CODES:
            _report_error("verify_email_code", e, {"email": email})
        raise

    logger.info(f"Email verified: {email}")
    result = VerificationResult(
        success=True, message="Email verification is complete."
    )
    return asdict(result)
