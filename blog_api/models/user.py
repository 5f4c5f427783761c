from sqlalchemy import Column, String, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from blog_api.db.base import BaseModel

class User(BaseModel):
    __tablename__ = "users"

    name = Column(String(100), nullable=False)
    avatar = Column(String(500), nullable=False, default="")
    email = Column(String(255), nullable=True)
    provider = Column(String(20), nullable=False)  # github, qq
    provider_id = Column(String(100), nullable=False)

    # Relationships
    comments = relationship("Comment", back_populates="author", cascade="all, delete-orphan")
    likes = relationship("CommentLike", back_populates="user", cascade="all, delete-orphan")

    # (provider, provider_id) is the durable identity key
    __table_args__ = (
        UniqueConstraint('provider', 'provider_id', name='unique_provider_identity'),
        Index('ix_users_created_at', 'created_at'),
    )
