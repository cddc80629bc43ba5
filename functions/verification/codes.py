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

import secrets
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Protocol

from dacite import Config, from_dict
from google.cloud.firestore_v1.base_query import FieldFilter

from shared import constants
from shared.firebase_constants import EMAIL_VERIFICATIONS_COLLECTION
from shared.json_utils import convert_keys

VERIFICATION_CODE_TTL = timedelta(seconds=constants.VERIFICATION_CODE_TTL_SECONDS)


class VerificationError(Exception):
    """Base class for verification flow failures."""


class VerificationNotFound(VerificationError):
    def __init__(self, message: str = "Verification code not found"):
        super().__init__(message)


class VerificationExpired(VerificationError):
    def __init__(self, message: str = "Verification code expired"):
        super().__init__(message)


class InvalidVerificationCode(VerificationError):
    def __init__(self, message: str = "Invalid verification code"):
        super().__init__(message)


class VerificationAlreadyUsed(VerificationError):
    def __init__(self, message: str = "Verification code already used"):
        super().__init__(message)


def _as_utc(value) -> datetime:
    # Firestore returns timezone-aware DatetimeWithNanoseconds values.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class VerificationRecord:
    """Schema for a pending email verification stored in Firestore."""

    code: str
    email: str
    expires_at: datetime
    created_at: datetime
    verified: bool = False
    verified_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now

    def to_document(self) -> dict:
        doc = convert_keys(asdict(self), "snake_to_camel")
        return {key: value for key, value in doc.items() if value is not None}

    @classmethod
    def from_document(cls, data: dict) -> "VerificationRecord":
        return from_dict(
            data_class=cls,
            data=convert_keys(data, "camel_to_snake"),
            config=Config(check_types=False, type_hooks={datetime: _as_utc}),
        )


class VerificationStore(Protocol):
    """Persistence for verification records, keyed by email."""

    def get(self, email: str) -> Optional[dict]:
        ...

    def set(self, email: str, data: dict) -> None:
        ...

    def update(self, email: str, data: dict) -> None:
        ...

    def delete(self, email: str) -> None:
        ...

    def list_expired(self, now: datetime) -> List[str]:
        ...


class InMemoryVerificationStore:
    """Test double for the Firestore-backed store."""

    def __init__(self):
        self.records: Dict[str, dict] = {}

    def get(self, email: str) -> Optional[dict]:
        data = self.records.get(email)
        return dict(data) if data is not None else None

    def set(self, email: str, data: dict) -> None:
        self.records[email] = dict(data)

    def update(self, email: str, data: dict) -> None:
        if email not in self.records:
            raise KeyError(email)
        self.records[email].update(data)

    def delete(self, email: str) -> None:
        self.records.pop(email, None)

    def list_expired(self, now: datetime) -> List[str]:
        return [
            email
            for email, data in self.records.items()
            if _as_utc(data["expiresAt"]) < now
        ]


class FirestoreVerificationStore:
    """Stores verification records in the `email_verifications` collection."""

    def __init__(self, db):
        self._collection = db.collection(EMAIL_VERIFICATIONS_COLLECTION)

    def get(self, email: str) -> Optional[dict]:
        doc = self._collection.document(email).get()
        if not doc.exists:
            return None
        return doc.to_dict()

    def set(self, email: str, data: dict) -> None:
        self._collection.document(email).set(data)

    def update(self, email: str, data: dict) -> None:
        self._collection.document(email).update(data)

    def delete(self, email: str) -> None:
        self._collection.document(email).delete()

    def list_expired(self, now: datetime) -> List[str]:
        query = self._collection.where(filter=FieldFilter("expiresAt", "<", now))
        return [doc.id for doc in query.stream()]


def generate_verification_code() -> str:
    """Returns a random 6-digit code in [100000, 999999]."""
    span = constants.VERIFICATION_CODE_MAX - constants.VERIFICATION_CODE_MIN + 1
    return str(constants.VERIFICATION_CODE_MIN + secrets.randbelow(span))


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def issue_code(
    store: VerificationStore,
    email: str,
    now: Optional[datetime] = None,
    code_generator: Callable[[], str] = generate_verification_code,
) -> VerificationRecord:
    """
    Generates a new code for `email` and stores it, replacing any pending one.

    Args:
        store (VerificationStore): Where the record is persisted.
        email (str): The address being verified. Also the record key.
        now (datetime, optional): Current time, defaults to UTC now.
        code_generator: Produces the code, overridable for tests.

    Returns:
        The stored VerificationRecord.
    """
    now = now or _utc_now()
    record = VerificationRecord(
        code=code_generator(),
        email=email,
        expires_at=now + VERIFICATION_CODE_TTL,
        created_at=now,
    )
    store.set(email, record.to_document())
    return record


def check_code(
    store: VerificationStore,
    email: str,
    code: str,
    now: Optional[datetime] = None,
) -> VerificationRecord:
    """
    Checks `code` against the pending record for `email` and marks it verified.

    Raises:
        VerificationNotFound: No code was issued for this email.
        VerificationExpired: The code expired. The record is deleted.
        VerificationAlreadyUsed: The code was already verified once.
        InvalidVerificationCode: The code does not match. The record is kept.
    """
    now = now or _utc_now()
    data = store.get(email)
    if data is None:
        raise VerificationNotFound()

    record = VerificationRecord.from_document(data)
    if record.is_expired(now):
        store.delete(email)
        raise VerificationExpired()

    if record.verified:
        raise VerificationAlreadyUsed()

    if record.code != str(code):
        raise InvalidVerificationCode()

    store.update(email, {"verified": True, "verifiedAt": now})
    return replace(record, verified=True, verified_at=now)


def purge_expired(store: VerificationStore, now: Optional[datetime] = None) -> int:
    """Deletes every expired record and returns how many were removed."""
    now = now or _utc_now()
    expired = store.list_expired(now)
    for email in expired:
        store.delete(email)
    return len(expired)
