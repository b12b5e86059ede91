"""
Entity Store Module

A single generic repository serves every table model. It provides the
owner-scoped read and write operations the endpoints need together with the
soft-delete lifecycle shared by all entities:

    ACTIVE  --mark_deleted-->  DELETED
    DELETED --restore------->  ACTIVE
    ACTIVE | DELETED --purge-> removed (irreversible, takes dependent rows along)

Reads exclude soft-deleted rows unless ``include_deleted=True`` is passed.
Every method returns ``None`` (or an empty list / ``False``) when nothing
matches; translating absence into an HTTP response is the caller's job.
"""
import logging
from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from sqlalchemy import delete, update
from sqlmodel import Session, SQLModel, select

from app.models.base import utcnow_iso

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)


class Repository(Generic[ModelT]):
    """
    Store and lifecycle operations for one table model.

    Args:
        model: SQLModel table class carrying the soft-delete envelope
        db: Database session
        owner_field: Column holding the owning user's id; ``owner_id``
            arguments filter on it. ``None`` disables owner scoping.
    """

    def __init__(self, model: Type[ModelT], db: Session, owner_field: Optional[str] = "user_id"):
        self.model = model
        self.db = db
        self.owner_field = owner_field

    # === Reads ===

    def _select(self, owner_id: Optional[str], include_deleted: bool, filters: Dict[str, Any]):
        statement = select(self.model)
        if not include_deleted:
            statement = statement.where(self.model.deleted == False)  # noqa: E712
        if owner_id is not None and self.owner_field:
            statement = statement.where(getattr(self.model, self.owner_field) == owner_id)
        for field, value in filters.items():
            statement = statement.where(getattr(self.model, field) == value)
        return statement

    def find(self, owner_id: Optional[str] = None, include_deleted: bool = False, **filters: Any) -> List[ModelT]:
        return list(self.db.exec(self._select(owner_id, include_deleted, filters)).all())

    def find_one(self, owner_id: Optional[str] = None, include_deleted: bool = False, **filters: Any) -> Optional[ModelT]:
        return self.db.exec(self._select(owner_id, include_deleted, filters)).first()

    def find_by_id(self, id: str, owner_id: Optional[str] = None, include_deleted: bool = False) -> Optional[ModelT]:
        return self.find_one(owner_id=owner_id, include_deleted=include_deleted, id=id)

    # === Writes ===

    def create(self, **attrs: Any) -> ModelT:
        obj = self.model(**attrs)
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        logger.info("Created %s %s", self.model.__name__, obj.id)
        return obj

    def save(self, obj: ModelT) -> ModelT:
        obj.updated_at = utcnow_iso()
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def update_one(self, id: str, patch: Dict[str, Any], owner_id: Optional[str] = None) -> Optional[ModelT]:
        """Apply ``patch`` to an active record and return it, or ``None``."""
        obj = self.find_by_id(id, owner_id=owner_id)
        if obj is None:
            return None
        for field, value in patch.items():
            setattr(obj, field, value)
        return self.save(obj)

    def update_if(self, id: str, patch: Dict[str, Any], **expected: Any) -> bool:
        """
        Apply ``patch`` in a single ``UPDATE`` only while the row still has the
        ``expected`` column values. Returns ``False`` when no row matched.
        """
        statement = update(self.model).where(self.model.id == id)
        for field, value in expected.items():
            statement = statement.where(getattr(self.model, field) == value)
        result = self.db.execute(
            statement.values(**patch, updated_at=utcnow_iso()).execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount == 1

    # === Soft-delete lifecycle ===

    @staticmethod
    def is_deleted(obj: SQLModel) -> bool:
        return bool(obj.deleted)

    def mark_deleted(self, id: str, owner_id: Optional[str] = None) -> Optional[ModelT]:
        """ACTIVE -> DELETED. Returns ``None`` if no active record matches."""
        obj = self.find_by_id(id, owner_id=owner_id)
        if obj is None:
            return None
        obj.deleted = True
        obj.deleted_at = utcnow_iso()
        self.save(obj)
        logger.info("Soft-deleted %s %s", self.model.__name__, id)
        return obj

    def restore(self, id: str, owner_id: Optional[str] = None) -> Optional[ModelT]:
        """DELETED -> ACTIVE. Returns ``None`` if the record is missing or not deleted."""
        obj = self.find_by_id(id, owner_id=owner_id, include_deleted=True)
        if obj is None or not self.is_deleted(obj):
            return None
        obj.deleted = False
        obj.deleted_at = None
        self.save(obj)
        logger.info("Restored %s %s", self.model.__name__, id)
        return obj

    def purge(
        self,
        id: str,
        owner_id: Optional[str] = None,
        dependents: Sequence[Tuple[Type[SQLModel], Any]] = (),
    ) -> bool:
        """
        Physically remove a record whatever its state. Returns ``False`` if absent.

        Args:
            dependents: ``(model, condition)`` pairs selecting rows that
                reference the record. They are deleted first, in the given
                order and in the same transaction, whatever their own state.
        """
        obj = self.find_by_id(id, owner_id=owner_id, include_deleted=True)
        if obj is None:
            return False
        for model, condition in dependents:
            result = self.db.execute(
                delete(model).where(condition).execution_options(synchronize_session=False)
            )
            logger.info(
                "Purged %d %s rows depending on %s %s", result.rowcount, model.__name__, self.model.__name__, id
            )
        self.db.delete(obj)
        self.db.commit()
        logger.info("Purged %s %s", self.model.__name__, id)
        return True

    def purge_owned(self, owner_id: str) -> int:
        """Physically remove every record of ``owner_id``. Returns how many went."""
        records = self.find(owner_id=owner_id, include_deleted=True)
        for obj in records:
            self.db.delete(obj)
        self.db.commit()
        logger.info("Purged %d %s records of user %s", len(records), self.model.__name__, owner_id)
        return len(records)
