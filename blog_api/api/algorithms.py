from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from blog_api.db.session import get_db
from blog_api.exceptions import ServiceError, to_http_exception
from blog_api.schemas.algorithm_schema import AlgorithmCreate, AlgorithmResponse
from blog_api.services.algorithm_service import AlgorithmService

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("", response_model=List[AlgorithmResponse])
async def list_algorithms(db: AsyncSession = Depends(get_db)):
    """List algorithm notes, newest first"""
    try:
        return await AlgorithmService(db).list_algorithms()
    except ServiceError as e:
        raise to_http_exception(e)

@router.post("", response_model=AlgorithmResponse, status_code=status.HTTP_201_CREATED)
async def create_algorithm(
    algorithm_data: AlgorithmCreate,
    db: AsyncSession = Depends(get_db)
):
    """Add an algorithm note"""
    try:
        return await AlgorithmService(db).create_algorithm(algorithm_data)
    except HTTPException:
        raise
    except ServiceError as e:
        raise to_http_exception(e)
