from sqlalchemy import Column, String, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from blog_api.db.base import BaseModel

class CommentLike(BaseModel):
    __tablename__ = "comment_likes"

    comment_id = Column(String(36), ForeignKey("comments.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # Relationships
    comment = relationship("Comment", back_populates="likes")
    user = relationship("User", back_populates="likes")

    __table_args__ = (
        UniqueConstraint('comment_id', 'user_id', name='unique_comment_like'),
        Index('ix_comment_likes_comment_id', 'comment_id'),
        Index('ix_comment_likes_user_id', 'user_id'),
    )
