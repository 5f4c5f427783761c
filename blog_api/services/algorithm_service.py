from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select, desc
import logging

from blog_api.exceptions import StoreError
from blog_api.models.algorithm import Algorithm
from blog_api.schemas.algorithm_schema import AlgorithmCreate

logger = logging.getLogger(__name__)

class AlgorithmService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_algorithms(self) -> List[Algorithm]:
        """Get all algorithm notes, newest first"""
        stmt = select(Algorithm).order_by(desc(Algorithm.created_at))
        try:
            result = await self.db.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error fetching algorithms: {e}")
            raise StoreError("Error fetching algorithms")

    async def create_algorithm(self, data: AlgorithmCreate) -> Algorithm:
        """Create a new algorithm note"""
        algorithm = Algorithm(
            title=data.title,
            url=data.url,
            category=data.category,
            difficulty=data.difficulty.value
        )
        try:
            self.db.add(algorithm)
            await self.db.commit()
            await self.db.refresh(algorithm)
        except SQLAlchemyError as e:
            logger.error(f"Error creating algorithm: {e}")
            await self.db.rollback()
            raise StoreError("Error creating algorithm")

        logger.info(f"Created algorithm {algorithm.id}: {algorithm.title}")
        return algorithm
