"""HTTP-01 and DNS-01 challenge material repositories."""

from __future__ import annotations

from pypgkit import BaseRepository, Database

from certfetch.models.challenge import DnsChallengeRecord, HttpChallengeRecord


class HttpChallengeRepository(BaseRepository[HttpChallengeRecord]):
    table_name = "http_challenges"
    primary_key = "token"

    def _row_to_entity(self, row: dict) -> HttpChallengeRecord:
        return HttpChallengeRecord(
            token=row["token"],
            key_authorization=row["key_authorization"],
        )

    def _entity_to_row(self, entity: HttpChallengeRecord) -> dict:
        return {
            "token": entity.token,
            "key_authorization": entity.key_authorization,
        }

    def upsert(self, record: HttpChallengeRecord) -> None:
        db = Database.get_instance()
        db.execute(
            "INSERT INTO http_challenges (token, key_authorization) "
            "VALUES (%s, %s) "
            "ON CONFLICT (token) DO UPDATE SET "
            "key_authorization = EXCLUDED.key_authorization",
            (record.token, record.key_authorization),
        )


class DnsChallengeRepository(BaseRepository[DnsChallengeRecord]):
    table_name = "dns_challenges"
    primary_key = "host_name"

    def _row_to_entity(self, row: dict) -> DnsChallengeRecord:
        return DnsChallengeRecord(
            host_name=row["host_name"],
            digest=row["digest"],
        )

    def _entity_to_row(self, entity: DnsChallengeRecord) -> dict:
        return {
            "host_name": entity.host_name,
            "digest": entity.digest,
        }

    def add(self, record: DnsChallengeRecord) -> None:
        db = Database.get_instance()
        db.execute(
            "INSERT INTO dns_challenges (host_name, digest) "
            "VALUES (%s, %s) ON CONFLICT DO NOTHING",
            (record.host_name, record.digest),
        )

    def find_digests(self, host: str) -> list[str]:
        return [r.digest for r in self.find_by({"host_name": host})]
