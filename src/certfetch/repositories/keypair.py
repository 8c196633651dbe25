"""Keypair repository.

Keypairs are keyed by ``(type, id)``: the same id (a domain) may own
both an ACCOUNT and a CERT keypair.
"""

from __future__ import annotations

from pypgkit import BaseRepository, Database

from certfetch.core.types import KeypairType
from certfetch.models.keypair import KeypairRecord


class KeypairRepository(BaseRepository[KeypairRecord]):
    table_name = "keypairs"
    primary_key = "id"

    def _row_to_entity(self, row: dict) -> KeypairRecord:
        return KeypairRecord(
            id=row["id"],
            type=KeypairType(row["type"]),
            public_key_pem=row["public_key_pem"],
            private_key_pem=row["private_key_pem"],
        )

    def _entity_to_row(self, entity: KeypairRecord) -> dict:
        return {
            "type": entity.type.value,
            "id": entity.id,
            "public_key_pem": entity.public_key_pem,
            "private_key_pem": entity.private_key_pem,
        }

    def find(self, keypair_type: KeypairType, keypair_id: str) -> KeypairRecord | None:
        return self.find_one_by({"type": keypair_type.value, "id": keypair_id})

    def upsert(self, keypair: KeypairRecord) -> None:
        db = Database.get_instance()
        db.execute(
            "INSERT INTO keypairs (type, id, public_key_pem, private_key_pem) "
            "VALUES (%(type)s, %(id)s, %(public_key_pem)s, %(private_key_pem)s) "
            "ON CONFLICT (type, id) DO UPDATE SET "
            "public_key_pem = EXCLUDED.public_key_pem, "
            "private_key_pem = EXCLUDED.private_key_pem",
            self._entity_to_row(keypair),
        )

    def remove(self, keypair_type: KeypairType, keypair_id: str) -> int:
        return self.delete_by({"type": keypair_type.value, "id": keypair_id})
