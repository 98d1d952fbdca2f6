"""GenerationRecord repository.

Every read takes the owner's user ID as a required argument; there is no
query path that can return another user's records.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from promptledger.models.generation import GenerationRecord
from promptledger.services.sort_spec import DEFAULT_SORT, SortSpec


class GenerationRepository:
    """Repository for GenerationRecord entities.

    Methods:
    - add: Persist new generation record
    - list_for_owner: Filtered, sorted, paginated listing with total count
    """

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def add(self, record: GenerationRecord) -> GenerationRecord:
        """Persist new generation record to database.

        Args:
            record: GenerationRecord entity to persist

        Returns:
            Persisted record with generated ID
        """
        self.session.add(record)
        await self.session.flush()
        return record

    async def list_for_owner(
        self,
        owner_id: UUID,
        *,
        search: str | None = None,
        sort: SortSpec = DEFAULT_SORT,
        offset: int = 0,
        limit: int = 15,
    ) -> tuple[list[GenerationRecord], int]:
        """Retrieve an owner's records with search, sorting and pagination.

        Search is a case-insensitive substring match on ``generated_prompt``,
        with both sides lowercased by the database.
        LIKE wildcards in the search term are escaped and match literally.

        Args:
            owner_id: User whose records are listed (always applied)
            search: Optional substring to match in the generated prompt
            sort: Sort field and direction
            offset: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of (records for the page, total matching records)
        """
        filters = [GenerationRecord.user_id == owner_id]  # type: ignore[arg-type]
        if search:
            filters.append(
                GenerationRecord.generated_prompt.icontains(  # type: ignore[attr-defined]
                    search, autoescape=True
                )
            )

        # Query 1: Get total count
        count_stmt = select(func.count(GenerationRecord.id)).where(*filters)  # type: ignore[arg-type]
        count_result = await self.session.execute(count_stmt)
        total = count_result.scalar() or 0

        # Query 2: Get page, with id as tiebreaker for stable pagination
        column = getattr(GenerationRecord, sort.field)
        data_stmt = (
            select(GenerationRecord)
            .where(*filters)
            .order_by(
                column.desc() if sort.descending else column.asc(),
                GenerationRecord.id.asc(),  # type: ignore[attr-defined]
            )
            .offset(offset)
            .limit(limit)
        )
        data_result = await self.session.execute(data_stmt)
        records = list(data_result.scalars().all())

        return (records, total)
