from typing import List, Optional, Set
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select, and_, func, delete
import logging

from blog_api.config import Settings, settings as default_settings
from blog_api.exceptions import AuthorizationError, NotFoundError, StoreError, ValidationError
from blog_api.models.comment import Comment
from blog_api.models.like import CommentLike
from blog_api.models.user import User
from blog_api.schemas.comment_schema import CommentResponse, CommentStats
from blog_api.schemas.user_schema import UserPublic

logger = logging.getLogger(__name__)

def validate_content(content: Optional[str], max_length: int) -> str:
    """Return the trimmed comment body or raise ValidationError"""
    if not isinstance(content, str):
        raise ValidationError("Comment content must be a string")
    content = content.strip()
    if not content:
        raise ValidationError("Comment content cannot be empty")
    if len(content) > max_length:
        raise ValidationError(f"Comment content exceeds {max_length} characters")
    return content

def validate_article_slug(article_slug: Optional[str], max_length: int) -> str:
    if not isinstance(article_slug, str) or not article_slug.strip():
        raise ValidationError("Article slug is required")
    article_slug = article_slug.strip()
    if len(article_slug) > max_length:
        raise ValidationError(f"Article slug exceeds {max_length} characters")
    return article_slug

def to_response(comment: Comment) -> CommentResponse:
    """Serialize an ORM comment with its author and likers"""
    return CommentResponse(
        id=comment.id,
        content=comment.content,
        author=UserPublic.model_validate(comment.author),
        article_slug=comment.article_slug,
        parent_id=comment.parent_id,
        likes=comment.like_count,
        liked_by=comment.liked_by,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        is_edited=comment.is_edited
    )

class CommentService:
    def __init__(self, db: AsyncSession, settings: Settings = default_settings):
        self.db = db
        self.max_length = settings.COMMENT_MAX_LENGTH
        self.slug_max_length = settings.ARTICLE_SLUG_MAX_LENGTH

    async def create(
        self,
        article_slug: str,
        content: str,
        author: User,
        parent_id: Optional[str] = None
    ) -> Comment:
        """Create a new comment or reply"""
        content = validate_content(content, self.max_length)
        article_slug = validate_article_slug(article_slug, self.slug_max_length)

        try:
            # Validate parent comment if provided
            if parent_id:
                parent_stmt = select(Comment.id).where(
                    and_(
                        Comment.id == parent_id,
                        Comment.article_slug == article_slug
                    )
                )
                parent_result = await self.db.execute(parent_stmt)
                if parent_result.scalar_one_or_none() is None:
                    raise NotFoundError("Parent comment not found or doesn't belong to this article")

            comment = Comment(
                article_slug=article_slug,
                user_id=author.id,
                content=content,
                parent_id=parent_id or None,
                is_edited=False,
                like_count=0
            )

            self.db.add(comment)
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error creating comment: {e}")
            await self.db.rollback()
            raise StoreError("Failed to create comment")

        logger.info(f"Created comment {comment.id} by user {author.id} on article {article_slug}")

        return await self.get(comment.id)

    async def get(self, comment_id: str) -> Comment:
        """Get a comment by ID with author and likes loaded"""
        stmt = select(Comment).where(Comment.id == comment_id).execution_options(
            populate_existing=True
        )
        try:
            result = await self.db.execute(stmt)
            comment = result.unique().scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error loading comment {comment_id}: {e}")
            raise StoreError("Failed to load comment")

        if comment is None:
            raise NotFoundError("Comment not found")
        return comment

    async def list(self, article_slug: str) -> List[Comment]:
        """All comments for an article, oldest first"""
        stmt = select(Comment).where(
            Comment.article_slug == article_slug
        ).order_by(
            Comment.created_at
        ).execution_options(populate_existing=True)

        try:
            result = await self.db.execute(stmt)
            return list(result.unique().scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing comments for {article_slug}: {e}")
            raise StoreError("Failed to list comments")

    async def like(self, comment_id: str, user_id: str) -> Comment:
        """Toggle a user's like on a comment"""
        await self.get(comment_id)

        try:
            check_stmt = select(CommentLike).where(
                and_(
                    CommentLike.comment_id == comment_id,
                    CommentLike.user_id == user_id
                )
            )
            check_result = await self.db.execute(check_stmt)
            existing = check_result.scalar_one_or_none()

            if existing:
                await self.db.delete(existing)
                action = "unliked"
            else:
                self.db.add(CommentLike(comment_id=comment_id, user_id=user_id))
                action = "liked"
            await self.db.flush()

            # Recount rather than increment so the counter tracks the like rows
            count_stmt = select(func.count(CommentLike.id)).where(
                CommentLike.comment_id == comment_id
            )
            like_count = (await self.db.execute(count_stmt)).scalar_one()

            comment = await self.db.get(Comment, comment_id)
            comment.like_count = like_count
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error toggling like on comment {comment_id}: {e}")
            await self.db.rollback()
            raise StoreError("Failed to update like")

        logger.info(f"User {user_id} {action} comment {comment_id}")

        return await self.get(comment_id)

    async def update(self, comment_id: str, user_id: str, new_content: str) -> Comment:
        """Edit a comment's content; only its author may do so"""
        comment = await self.get(comment_id)

        if comment.user_id != user_id:
            raise AuthorizationError("You can only edit your own comments")

        new_content = validate_content(new_content, self.max_length)

        try:
            comment.content = new_content
            comment.is_edited = True
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error updating comment {comment_id}: {e}")
            await self.db.rollback()
            raise StoreError("Failed to update comment")

        logger.info(f"User {user_id} edited comment {comment_id}")

        return await self.get(comment_id)

    async def delete(self, comment_id: str, user_id: str) -> List[str]:
        """Delete a comment and all of its replies; only its author may do so"""
        comment = await self.get(comment_id)

        if comment.user_id != user_id:
            raise AuthorizationError("You can only delete your own comments")

        try:
            doomed = await self._collect_descendants(comment)

            await self.db.execute(
                delete(CommentLike).where(CommentLike.comment_id.in_(doomed))
            )
            await self.db.execute(
                delete(Comment).where(Comment.id.in_(doomed))
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error deleting comment {comment_id}: {e}")
            await self.db.rollback()
            raise StoreError("Failed to delete comment")

        logger.info(f"Deleted comment {comment_id} and {len(doomed) - 1} replies")

        return doomed

    async def _collect_descendants(self, comment: Comment) -> List[str]:
        """Ids of a comment and every reply below it, breadth first"""
        collected = [comment.id]
        seen: Set[str] = {comment.id}
        frontier = [comment.id]

        while frontier:
            stmt = select(Comment.id).where(
                and_(
                    Comment.parent_id.in_(frontier),
                    Comment.article_slug == comment.article_slug
                )
            )
            result = await self.db.execute(stmt)
            frontier = [row[0] for row in result if row[0] not in seen]
            seen.update(frontier)
            collected.extend(frontier)

        return collected

    async def stats(self, article_slug: Optional[str] = None) -> CommentStats:
        """Comment counts, overall and per article"""
        stmt = select(
            Comment.article_slug,
            func.count(Comment.id)
        ).group_by(Comment.article_slug)

        if article_slug is not None:
            stmt = stmt.where(Comment.article_slug == article_slug)

        try:
            result = await self.db.execute(stmt)
            by_article = {slug: count for slug, count in result.all()}
        except SQLAlchemyError as e:
            logger.error(f"Error computing comment stats: {e}")
            raise StoreError("Failed to compute comment stats")

        return CommentStats(total=sum(by_article.values()), by_article=by_article)
