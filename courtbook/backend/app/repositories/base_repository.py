"""
Base repository for the booking store.

Repositories hold no session of their own: the caller's unit of work (a
SQLAlchemy ``Session``) is passed to every call, so all reads and writes of one
booking share the same transaction.
"""

from typing import Generic, Iterable, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

T = TypeVar("T")


class BaseRepository(Generic[T]):
    model: Type[T]

    def __init__(self, model: Optional[Type[T]] = None) -> None:
        if model is not None:
            self.model = model

    def get(self, db: Session, id: int) -> Optional[T]:
        return db.get(self.model, id)

    def get_for_update(self, db: Session, id: int) -> Optional[T]:
        """Load a row and hold a write lock on it until the transaction ends.

        ``populate_existing`` makes sure an instance already in the identity map
        is refreshed from the locked row.
        """
        return (
            db.execute(
                select(self.model)
                .where(self.model.id == id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            .scalars()
            .one_or_none()
        )

    def lock_many(self, db: Session, ids: Iterable[int]) -> List[T]:
        """Lock rows in ascending id order so concurrent callers never deadlock."""
        ordered = sorted(set(ids))
        if not ordered:
            return []
        return list(
            db.execute(
                select(self.model)
                .where(self.model.id.in_(ordered))
                .order_by(self.model.id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            .scalars()
            .all()
        )

    def list(self, db: Session) -> List[T]:
        return list(db.execute(select(self.model).order_by(self.model.id)).scalars().all())

    def add(self, db: Session, instance: T) -> T:
        db.add(instance)
        db.flush()
        return instance
