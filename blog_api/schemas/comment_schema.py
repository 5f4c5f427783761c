from pydantic import Field
from typing import Optional, List, Dict
from datetime import datetime
from enum import Enum

from blog_api.schemas.base_schema import CamelModel
from blog_api.schemas.user_schema import UserPublic

class CommentSort(str, Enum):
    OLDEST = "oldest"
    NEWEST = "newest"
    POPULAR = "popular"

# Content limits are enforced by the comment service. Structural errors in
# these bodies are answered with 400 by the app-level validation handler.
class CommentCreate(CamelModel):
    article_slug: str
    content: str
    parent_id: Optional[str] = None

class CommentUpdate(CamelModel):
    content: str

class CommentResponse(CamelModel):
    id: str
    content: str
    author: UserPublic
    article_slug: str
    parent_id: Optional[str] = None
    likes: int = 0
    liked_by: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    is_edited: bool = False

class CommentTreeResponse(CommentResponse):
    replies: List['CommentTreeResponse'] = Field(default_factory=list)

class CommentStats(CamelModel):
    total: int = 0
    by_article: Dict[str, int] = Field(default_factory=dict)

class CommentDeleteResponse(CamelModel):
    deleted_ids: List[str]

# For nested models
CommentTreeResponse.model_rebuild()
