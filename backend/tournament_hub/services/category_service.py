import logging
from typing import List

from sqlalchemy.orm import Session

from tournament_hub.core.errors import ConflictError, NotFoundError, ValidationError
from tournament_hub.db.unit_of_work import SqlAlchemyUnitOfWork
from tournament_hub.models.category import Category
from tournament_hub.models.tournament import tournament_categories
from tournament_hub.schemas.category import CategoryCreate, CategoryUpdate

logger = logging.getLogger(__name__)


class CategoryService:
    def __init__(self, db: Session):
        self.db = db
        self.uow = SqlAlchemyUnitOfWork(db)

    def _require(self, category_id: int) -> Category:
        row = self.db.query(Category).filter(Category.id == category_id).first()
        if row is None:
            raise NotFoundError(f"Category {category_id} not found")
        return row

    def _ensure_unique_name(self, name: str, exclude_id: int | None = None) -> None:
        q = self.db.query(Category).filter(Category.name == name)
        if exclude_id is not None:
            q = q.filter(Category.id != exclude_id)
        if q.first():
            raise ConflictError(f"Category '{name}' already exists")

    def create(self, data: CategoryCreate) -> Category:
        name = data.name.strip()
        self._ensure_unique_name(name)
        with self.uow:
            row = Category(name=name, description=(data.description or "").strip() or None)
            self.db.add(row)
            self.db.flush()
        logger.info("Created category %s (%s)", row.id, row.name)
        return row

    def get(self, category_id: int) -> Category:
        return self._require(category_id)

    def list(self) -> List[Category]:
        return self.db.query(Category).order_by(Category.name.asc()).all()

    def update(self, category_id: int, data: CategoryUpdate) -> Category:
        row = self._require(category_id)
        changes = data.model_dump(exclude_unset=True)

        with self.uow:
            if changes.get("name") is not None:
                name = changes["name"].strip()
                self._ensure_unique_name(name, exclude_id=category_id)
                row.name = name
            if "description" in changes:
                row.description = (changes["description"] or "").strip() or None
            self.db.flush()
        return row

    def delete(self, category_id: int) -> None:
        row = self._require(category_id)
        linked = (
            self.db.query(tournament_categories)
            .filter(tournament_categories.c.category_id == category_id)
            .count()
        )
        if linked:
            raise ValidationError(f"Category {category_id} is used by {linked} tournaments")

        with self.uow:
            self.db.delete(row)
        logger.info("Deleted category %s", category_id)
