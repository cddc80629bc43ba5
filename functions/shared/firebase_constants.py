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

WALLY_DATABASE_ID = "wallydb"

EMAIL_VERIFICATIONS_COLLECTION = "email_verifications"

BOARDS_COLLECTION = "boards"
STUDENTS_COLLECTION = "students"
PHOTOS_COLLECTION = "photos"
PHOTO_VIEWS_COLLECTION = "photo_views"
USERS_COLLECTION = "users"
ACTIVITIES_COLLECTION = "activities"
