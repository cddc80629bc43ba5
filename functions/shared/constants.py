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

VERIFICATION_CODE_MIN = 100000
VERIFICATION_CODE_MAX = 999999
VERIFICATION_CODE_TTL_SECONDS = 5 * 60

MAX_EMAIL_LENGTH = 320

BOARD_TITLE_MAX_LENGTH = 100
STUDENT_NAME_MAX_LENGTH = 50
STUDENT_ID_MAX_LENGTH = 128
USERNAME_MAX_LENGTH = 50
MIN_PASSWORD_LENGTH = 6

MAX_VIEW_SESSION_SECONDS = 3600

DEFAULT_ALLOWED_DOMAIN = "korea.kr"
DEFAULT_CONFIG_VERSION = "v1.0.0"
