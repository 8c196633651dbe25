"""Customer project repository."""

from __future__ import annotations

from pypgkit import BaseRepository

from certfetch.models.project import Project


class ProjectRepository(BaseRepository[Project]):
    table_name = "projects"
    primary_key = "slug"

    def _row_to_entity(self, row: dict) -> Project:
        return Project(
            slug=row["slug"],
            created_at=row["created_at"],
        )

    def _entity_to_row(self, entity: Project) -> dict:
        return {"slug": entity.slug}

    def find_by_slug(self, slug: str) -> Project | None:
        return self.find_one_by({"slug": slug.lower()})
