"""
Models package for Blog API
"""
from blog_api.db.base import Base, BaseModel
from blog_api.models.user import User
from blog_api.models.comment import Comment
from blog_api.models.like import CommentLike
from blog_api.models.algorithm import Algorithm

__all__ = [
    'Base',
    'BaseModel',
    'User',
    'Comment',
    'CommentLike',
    'Algorithm',
]
