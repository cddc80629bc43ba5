"""
Delete expired email verification codes from Firestore.

Codes are normally removed when someone tries to use them after expiry.
This cleans up the ones nobody came back for.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import firebase_admin
from firebase_admin import firestore

from shared.firebase_constants import WALLY_DATABASE_ID
from shared.types import utc_now
from verification import codes

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Delete expired email verification codes"
    )
    parser.add_argument(
        "--database-id",
        default=os.environ.get("FIRESTORE_DATABASE_ID", WALLY_DATABASE_ID),
        help="Firestore database to clean up",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report how many codes would be deleted without deleting them",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    firebase_admin.initialize_app()
    store = codes.FirestoreVerificationStore(
        firestore.client(database_id=args.database_id)
    )

    if args.dry_run:
        expired = store.list_expired(utc_now())
        logger.info("Would delete %d expired codes", len(expired))
        return 0

    deleted = codes.purge_expired(store)
    logger.info("Deleted %d expired codes", deleted)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
