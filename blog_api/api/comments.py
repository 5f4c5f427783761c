from fastapi import APIRouter, Depends, HTTPException, Request, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from blog_api.config import Settings, get_app_settings
from blog_api.db.session import get_db
from blog_api.exceptions import ServiceError, to_http_exception
from blog_api.models.user import User
from blog_api.schemas.comment_schema import (
    CommentCreate,
    CommentDeleteResponse,
    CommentResponse,
    CommentSort,
    CommentStats,
    CommentTreeResponse,
    CommentUpdate
)
from blog_api.services.auth_service import require_user
from blog_api.services.comment_service import CommentService, to_response
from blog_api.services.comment_tree import build_comment_tree
from blog_api.utils.rate_limit import comment_rate_limit, rate_limit

logger = logging.getLogger(__name__)

router = APIRouter()

def get_comment_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings)
) -> CommentService:
    return CommentService(db, settings)

@router.get("", response_model=List[CommentTreeResponse])
async def list_comments(
    article: str = Query(..., min_length=1, description="Article slug"),
    tree: bool = Query(True, description="Nest replies under their parents"),
    sort_by: CommentSort = Query(CommentSort.OLDEST),
    max_depth: Optional[int] = Query(None, ge=1, le=10),
    comment_service: CommentService = Depends(get_comment_service)
):
    """Get the comments of an article, tree-shaped by default"""
    try:
        comments = [to_response(c) for c in await comment_service.list(article)]

        if not tree:
            return [CommentTreeResponse(**c.model_dump()) for c in comments]

        return build_comment_tree(comments, sort_by=sort_by, max_depth=max_depth)

    except HTTPException:
        raise
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error getting comments for {article}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get comments"
        )

@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
@rate_limit(comment_rate_limit)
async def create_comment(
    request: Request,
    comment_data: CommentCreate,
    current_user: User = Depends(require_user),
    comment_service: CommentService = Depends(get_comment_service)
):
    """Create a new comment or reply on an article"""
    try:
        comment = await comment_service.create(
            article_slug=comment_data.article_slug,
            content=comment_data.content,
            author=current_user,
            parent_id=comment_data.parent_id
        )
        return to_response(comment)

    except HTTPException:
        raise
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error creating comment: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create comment"
        )

@router.get("/stats", response_model=CommentStats)
async def get_comment_stats(
    article: Optional[str] = Query(None, min_length=1, description="Article slug"),
    comment_service: CommentService = Depends(get_comment_service)
):
    """Get comment counts, overall and per article"""
    try:
        return await comment_service.stats(article)
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error getting comment stats: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get comment stats"
        )

@router.get("/{comment_id}", response_model=CommentResponse)
async def get_comment(
    comment_id: str,
    comment_service: CommentService = Depends(get_comment_service)
):
    """Get a single comment"""
    try:
        return to_response(await comment_service.get(comment_id))
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error getting comment {comment_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get comment"
        )

@router.put("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: str,
    comment_update: CommentUpdate,
    current_user: User = Depends(require_user),
    comment_service: CommentService = Depends(get_comment_service)
):
    """Edit a comment (author only)"""
    try:
        comment = await comment_service.update(
            comment_id=comment_id,
            user_id=current_user.id,
            new_content=comment_update.content
        )
        return to_response(comment)

    except HTTPException:
        raise
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error updating comment {comment_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update comment"
        )

@router.delete("/{comment_id}", response_model=CommentDeleteResponse)
async def delete_comment(
    comment_id: str,
    current_user: User = Depends(require_user),
    comment_service: CommentService = Depends(get_comment_service)
):
    """Delete a comment and its replies (author only)"""
    try:
        deleted_ids = await comment_service.delete(comment_id, current_user.id)
        return CommentDeleteResponse(deleted_ids=deleted_ids)

    except HTTPException:
        raise
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error deleting comment {comment_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete comment"
        )

@router.post("/{comment_id}/like", response_model=CommentResponse)
async def toggle_comment_like(
    comment_id: str,
    current_user: User = Depends(require_user),
    comment_service: CommentService = Depends(get_comment_service)
):
    """Like a comment, or remove the like if already given"""
    try:
        comment = await comment_service.like(comment_id, current_user.id)
        return to_response(comment)

    except HTTPException:
        raise
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error toggling like on comment {comment_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to like comment"
        )
