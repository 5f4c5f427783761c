from sqlalchemy import Column, String, Text, Integer, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship
from blog_api.db.base import BaseModel

class Comment(BaseModel):
    __tablename__ = "comments"

    article_slug = Column(String(200), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    parent_id = Column(String(36), ForeignKey("comments.id", ondelete="CASCADE"), nullable=True)
    is_edited = Column(Boolean, default=False, nullable=False)

    # Relationships
    author = relationship("User", back_populates="comments", lazy="joined")
    parent = relationship(
        "Comment",
        remote_side="Comment.id",
        foreign_keys=[parent_id]
    )
    likes = relationship(
        "CommentLike",
        back_populates="comment",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="CommentLike.created_at"
    )

    # Denormalized, always equal to len(likes)
    like_count = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        Index('ix_comments_article_slug', 'article_slug'),
        Index('ix_comments_user_id', 'user_id'),
        Index('ix_comments_parent_id', 'parent_id'),
        Index('ix_comments_created_at', 'created_at'),
    )

    @property
    def liked_by(self):
        return [like.user_id for like in self.likes]
