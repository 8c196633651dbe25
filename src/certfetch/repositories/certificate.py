"""Certificate repository."""

from __future__ import annotations

from pypgkit import BaseRepository, Database

from certfetch.models.certificate import CertRecord


class CertRepository(BaseRepository[CertRecord]):
    table_name = "certs"
    primary_key = "domain"

    def _row_to_entity(self, row: dict) -> CertRecord:
        return CertRecord(
            domain=row["domain"],
            cert_pem=row["cert_pem"],
            chain_pem=row["chain_pem"],
            alt_names=tuple(row.get("alt_names") or ()),
            issued_at=row["issued_at"],
            expires_at=row["expires_at"],
            ttl=row["ttl"],
        )

    def _entity_to_row(self, entity: CertRecord) -> dict:
        from psycopg.types.json import Jsonb

        return {
            "domain": entity.domain,
            "cert_pem": entity.cert_pem,
            "chain_pem": entity.chain_pem,
            "alt_names": Jsonb(list(entity.alt_names)),
            "issued_at": entity.issued_at,
            "expires_at": entity.expires_at,
            "ttl": entity.ttl,
        }

    def find_active(self, domain: str) -> CertRecord | None:
        """Return the certificate for *domain* unless it has expired."""
        db = Database.get_instance()
        row = db.fetch_one(
            "SELECT * FROM certs WHERE domain = %s AND expires_at > now()",
            (domain,),
            as_dict=True,
        )
        return self._row_to_entity(row) if row else None

    def upsert(self, cert: CertRecord) -> None:
        """Insert *cert* or replace the existing record for its domain."""
        row = self._entity_to_row(cert)
        db = Database.get_instance()
        db.execute(
            "INSERT INTO certs "
            "(domain, cert_pem, chain_pem, alt_names, issued_at, expires_at, ttl) "
            "VALUES (%(domain)s, %(cert_pem)s, %(chain_pem)s, %(alt_names)s, "
            "%(issued_at)s, %(expires_at)s, %(ttl)s) "
            "ON CONFLICT (domain) DO UPDATE SET "
            "cert_pem = EXCLUDED.cert_pem, "
            "chain_pem = EXCLUDED.chain_pem, "
            "alt_names = EXCLUDED.alt_names, "
            "issued_at = EXCLUDED.issued_at, "
            "expires_at = EXCLUDED.expires_at, "
            "ttl = EXCLUDED.ttl, "
            "updated_at = now()",
            row,
        )

