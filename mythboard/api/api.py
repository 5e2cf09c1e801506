from fastapi import APIRouter
from mythboard.api.endpoints import (
    users,
    identity,
    posts,
    reactions,
    favorites,
    reviews
)

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(identity.router, prefix="/identity", tags=["identity"])
api_router.include_router(posts.router, prefix="/posts", tags=["posts"])
api_router.include_router(reviews.router, prefix="/posts/{post_id}/reviews", tags=["reviews"])
api_router.include_router(reactions.router, prefix="/reactions", tags=["reactions"])
api_router.include_router(favorites.router, prefix="/favorites", tags=["favorites"])
