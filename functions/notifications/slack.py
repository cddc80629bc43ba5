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

import json
import time
from datetime import datetime, timezone
from typing import Optional

import requests

from firebase_functions import logger

REQUEST_TIMEOUT = 5  # seconds
ERROR_COLOR = "#ff0000"


def build_error_alert(
    function_name: str, error: BaseException, context: Optional[dict] = None
) -> dict:
    """Builds the Slack webhook payload for a function error."""
    fields = [
        {"title": "Function", "value": function_name, "short": True},
        {
            "title": "Timestamp",
            "value": datetime.now(timezone.utc).isoformat(),
            "short": True,
        },
        {"title": "Error Message", "value": f"```{error}```", "short": False},
    ]
    if context:
        fields.append(
            {
                "title": "Context",
                "value": f"```{json.dumps(context, indent=2, default=str)}```",
                "short": False,
            }
        )
    return {
        "username": "Firebase Functions Bot",
        "icon_emoji": ":fire:",
        "attachments": [
            {
                "color": ERROR_COLOR,
                "title": "Firebase Functions error",
                "fields": fields,
                "footer": "Wally Firebase Functions",
                "ts": int(time.time()),
            }
        ],
    }


def send_error_alert(
    function_name: str,
    error: BaseException,
    context: Optional[dict] = None,
    *,
    webhook_url: Optional[str],
) -> bool:
    """
    Posts an error alert to Slack.

    Delivery failures are logged and never raised.

    Returns:
        True if Slack accepted the alert.
    """
    if not webhook_url:
        return False

    payload = build_error_alert(function_name, error, context)
    try:
        response = requests.post(webhook_url, json=payload, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.warn(f"Failed to send Slack alert for {function_name}: {e}")
        return False
    return True
