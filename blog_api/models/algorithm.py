from sqlalchemy import Column, String, Index
from blog_api.db.base import BaseModel

class Algorithm(BaseModel):
    __tablename__ = "algorithms"

    title = Column(String(200), nullable=False)
    url = Column(String(500), nullable=False)
    category = Column(String(100), nullable=False)
    difficulty = Column(String(20), nullable=False)  # easy, medium, hard

    __table_args__ = (
        Index('ix_algorithms_created_at', 'created_at'),
        Index('ix_algorithms_category', 'category'),
    )
