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

import html
from datetime import datetime, timezone
from typing import Optional

import requests

from firebase_functions import logger

from shared import constants

RESEND_API_URL = "https://api.resend.com/emails"
REQUEST_TIMEOUT = 10  # seconds

DEFAULT_SENDER = "Wally Team <onboarding@resend.dev>"


class EmailDeliveryError(Exception):
    pass


def render_verification_email(email: str, code: str, now: Optional[datetime] = None) -> str:
    """Renders the HTML notice for a teacher verification request."""
    now = now or datetime.now(timezone.utc)
    ttl_minutes = constants.VERIFICATION_CODE_TTL_SECONDS // 60
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Wally verification request</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
  <div style="background: #667eea; color: white; padding: 30px; text-align: center; border-radius: 10px 10px 0 0;">
    <h1 style="margin: 0; font-size: 28px;">Wally</h1>
    <p style="margin: 10px 0 0 0; font-size: 18px;">Teacher verification request</p>
  </div>
  <div style="background: #f8f9fa; padding: 30px; border-radius: 0 0 10px 10px;">
    <p style="font-size: 16px;"><strong>Requested by:</strong></p>
    <p style="font-size: 18px; color: #007bff;">{html.escape(email)}</p>
    <p style="font-size: 14px; color: #6c757d;">Verification code</p>
    <div style="font-size: 32px; font-weight: bold; letter-spacing: 4px; font-family: 'SF Mono', Monaco, monospace;">{code}</div>
    <p style="font-size: 14px; color: #0c5460;">This code expires in <strong>{ttl_minutes} minutes</strong>.</p>
    <p style="font-size: 14px; color: #856404;">Enter the code in the app to finish verification.</p>
    <p style="color: #6c757d; font-size: 14px;">Sent at {now.strftime("%Y-%m-%d %H:%M:%S %Z")}</p>
  </div>
</body>
</html>
"""


def send_verification_email(
    email: str,
    code: str,
    *,
    api_key: Optional[str],
    sender: str = DEFAULT_SENDER,
    recipient_override: Optional[str] = None,
    session: Optional[requests.Session] = None,
) -> dict:
    """
    Sends the verification code through the Resend API.

    Args:
        email (str): The address that requested verification.
        code (str): The code to deliver.
        api_key (str): Resend API key.
        sender (str): The From header.
        recipient_override (str, optional): Deliver to this address instead of
            `email`. Used while the sending domain is unverified, when Resend
            only delivers to the account owner.
        session (requests.Session, optional): Session to send with.

    Returns:
        The Resend response body.

    Raises:
        EmailDeliveryError: If no key is configured or Resend rejects the request.
    """
    if not api_key:
        raise EmailDeliveryError("RESEND_API_KEY is not configured")

    payload = {
        "from": sender,
        "to": [recipient_override or email],
        "subject": f"[Wally] Teacher verification request - {email}",
        "html": render_verification_email(email, code),
    }
    post = session.post if session else requests.post
    response = post(
        RESEND_API_URL,
        json=payload,
        headers={"Authorization": f"Bearer {api_key}"},
        timeout=REQUEST_TIMEOUT,
    )
    if not response.ok:
        raise EmailDeliveryError(
            f"Resend rejected the request ({response.status_code}): {response.text}"
        )

    body = response.json()
    logger.info(f"Verification email sent for {email} (id={body.get('id')})")
    return body
