"""MongoDB contest store implementation."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable

from pymongo import ASCENDING, MongoClient
from pymongo.errors import PyMongoError

from ..errors import StoreError
from ..records import ContestRecord, Platform, to_utc
from .base import ContestStore, StoredContest, UpsertOutcome, resolve_platform

_PROJECTION = {"_id": 0}


class MongoContestStore(ContestStore):
    """Persist contests and bookmarks in MongoDB collections."""

    def __init__(
        self,
        uri: str | None = None,
        database: str = "contest_radar",
        client: Any | None = None,
    ) -> None:
        self.client = client if client is not None else MongoClient(uri, tz_aware=True)
        db = self.client[database]
        self.contests = db["contests"]
        self.users = db["users"]
        self._ensure_indexes()

    def _ensure_indexes(self) -> None:
        try:
            self.contests.create_index("id", unique=True)
            self.contests.create_index([("platform", ASCENDING), ("start_time", ASCENDING)])
            self.users.create_index("email", unique=True)
        except PyMongoError as exc:
            raise StoreError(f"mongo index setup failed: {exc}") from exc

    def upsert(self, record: ContestRecord) -> UpsertOutcome:
        now = datetime.now(timezone.utc)
        document = record.to_document()
        document["updated_at"] = now
        try:
            result = self.contests.update_one(
                {"id": record.id},
                {"$set": document, "$setOnInsert": {"created_at": now}},
                upsert=True,
            )
        except PyMongoError as exc:
            raise StoreError(f"mongo upsert failed: {exc}") from exc
        return UpsertOutcome.INSERTED if result.upserted_id is not None else UpsertOutcome.UPDATED

    def delete_expired(self, cutoff: datetime, platforms: Iterable[Platform]) -> int:
        names = [Platform(platform).value for platform in platforms]
        if not names:
            return 0
        try:
            result = self.contests.delete_many(
                {"end_time": {"$lt": to_utc(cutoff)}, "platform": {"$in": names}}
            )
        except PyMongoError as exc:
            raise StoreError(f"mongo delete_expired failed: {exc}") from exc
        return result.deleted_count

    def list_contests(self, platform: Platform | str | None = None) -> list[ContestRecord]:
        resolved = resolve_platform(platform)
        query = {} if resolved is None else {"platform": resolved.value}
        return self._find(query)

    def get_contest(self, contest_id: str) -> StoredContest | None:
        try:
            document = self.contests.find_one({"id": contest_id}, _PROJECTION)
        except PyMongoError as exc:
            raise StoreError(f"mongo get_contest failed: {exc}") from exc
        if document is None:
            return None
        return StoredContest(
            record=ContestRecord.from_document(document),
            created_at=to_utc(document["created_at"]),
            updated_at=to_utc(document["updated_at"]),
        )

    def contests_by_ids(self, contest_ids: Iterable[str]) -> list[ContestRecord]:
        ids = list(dict.fromkeys(contest_ids))
        if not ids:
            return []
        return self._find({"id": {"$in": ids}})

    def count(self) -> int:
        try:
            return self.contests.count_documents({})
        except PyMongoError as exc:
            raise StoreError(f"mongo count failed: {exc}") from exc

    def toggle_bookmark(self, email: str, contest_id: str) -> list[str]:
        try:
            user = self.users.find_one({"email": email})
            if user is None:
                self.users.insert_one(
                    {
                        "email": email,
                        "bookmarked_contests": [contest_id],
                        "created_at": datetime.now(timezone.utc),
                    }
                )
            elif contest_id in user.get("bookmarked_contests", []):
                self.users.update_one({"email": email}, {"$pull": {"bookmarked_contests": contest_id}})
            else:
                self.users.update_one({"email": email}, {"$push": {"bookmarked_contests": contest_id}})
        except PyMongoError as exc:
            raise StoreError(f"mongo toggle_bookmark failed: {exc}") from exc
        return self.bookmarks(email)

    def bookmarks(self, email: str) -> list[str]:
        try:
            user = self.users.find_one({"email": email})
        except PyMongoError as exc:
            raise StoreError(f"mongo bookmarks failed: {exc}") from exc
        if not user:
            return []
        return list(user.get("bookmarked_contests", []))

    def close(self) -> None:
        self.client.close()

    def _find(self, query: dict[str, Any]) -> list[ContestRecord]:
        try:
            cursor = self.contests.find(query, _PROJECTION).sort(
                [("start_time", ASCENDING), ("id", ASCENDING)]
            )
            return [ContestRecord.from_document(document) for document in cursor]
        except PyMongoError as exc:
            raise StoreError(f"mongo find failed: {exc}") from exc


__all__ = ["MongoContestStore"]
