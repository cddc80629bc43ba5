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

from dataclasses import dataclass
from typing import Optional


@dataclass
class SendVerificationEmailRequest:
    """Payload of the send_verification_email callable."""

    email: Optional[str] = None


@dataclass
class VerifyEmailCodeRequest:
    """Payload of the verify_email_code callable."""

    email: Optional[str] = None
    code: Optional[str] = None


@dataclass
class VerificationResult:
    """Result returned by both verification callables."""

    success: bool
    message: str
