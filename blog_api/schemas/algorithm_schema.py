from pydantic import Field
from datetime import datetime
from enum import Enum

from blog_api.schemas.base_schema import CamelModel

class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

class AlgorithmCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    url: str = Field(..., min_length=1, max_length=500)
    category: str = Field(..., min_length=1, max_length=100)
    difficulty: Difficulty

class AlgorithmResponse(AlgorithmCreate):
    id: str
    created_at: datetime
    updated_at: datetime
