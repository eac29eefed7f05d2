from typing import Generic, TypeVar, Type, List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from insightmap.utils.logging import get_logger

# Define a generic type for SQLAlchemy models
ModelType = TypeVar("ModelType")

LOGGER = get_logger(__name__)


def describe_storage_error(error: SQLAlchemyError) -> str:
    """Short, parameter-free description of a storage failure."""
    original = getattr(error, "orig", None)
    message = str(original) if original is not None else str(error)
    return message.splitlines()[0] if message else error.__class__.__name__


class BaseRepository(Generic[ModelType]):
    """Base repository for owner-scoped writes.

    Writes are staged and flushed here; the caller owns the transaction and
    decides when to commit or roll back.
    """

    def __init__(self, session: AsyncSession, model: Type[ModelType]):
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session
            model: The SQLAlchemy model class this repository manages
        """
        self.session = session
        self.model = model
        self.logger = LOGGER

    async def create(self, **kwargs) -> ModelType:
        """Stage a new record and flush it so its id is assigned.

        Args:
            **kwargs: Fields and values for the new record

        Returns:
            The created (uncommitted) record
        """
        try:
            instance = self.model(**kwargs)
            self.session.add(instance)
            await self.session.flush()
            return instance
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error creating {self.model.__name__}: {describe_storage_error(e)}"
            )
            raise

    async def add_many(self, instances: List[ModelType]) -> List[ModelType]:
        """Stage several records and flush them in one round trip.

        The caller owns the transaction: nothing is committed here.
        """
        if not instances:
            return []
        self.session.add_all(instances)
        await self.session.flush()
        return instances
