"""
API Routers Package

Each router groups related endpoints and is registered in main.py under
the /api/v1 prefix:
- auth.py: /auth/* (email verification, registration, login, OAuth)
- users.py: /users/* (profiles, follows, blocks, notifications)
- reviews.py: /reviews/* (feeds, CRUD, reactions)
- comments.py: /reviews/{id}/comments, /comments/{id}
"""

from reviewhub.routers.auth import router as auth_router
from reviewhub.routers.comments import router as comments_router
from reviewhub.routers.reviews import router as reviews_router
from reviewhub.routers.users import router as users_router

__all__ = [
    "auth_router",
    "comments_router",
    "reviews_router",
    "users_router",
]
