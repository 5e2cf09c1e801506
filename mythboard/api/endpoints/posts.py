import math
from typing import Annotated, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from mythboard.api.deps import SessionDep, SettingsDep, get_identity, get_post_or_404
from mythboard.api.endpoints.reviews import rating_stats
from mythboard.core.identity import Identity
from mythboard.models.favorite import Favorite
from mythboard.models.post import Post
from mythboard.models.review import Review
from mythboard.repositories.favorite import SqlFavoriteRepository
from mythboard.repositories.reaction import SqlReactionRepository
from mythboard.schemas.post import PostCreate, PostListResponse, PostResponse, PostUpdate

router = APIRouter()


def clean(value: Optional[str]) -> Optional[str]:
    """Strip a text field, empty strings become None"""
    if value is None:
        return None
    value = value.strip()
    return value or None


def build_post_response(session: Session, post: Post) -> dict:
    favorites_count = session.scalar(
        select(func.count(Favorite.id)).where(Favorite.post_id == post.id)
    ) or 0
    average_rating, reviews_count = rating_stats(session, post.id)
    return {
        "id": post.id,
        "title": post.title,
        "content": post.content,
        "excerpt": post.excerpt,
        "author": post.author,
        "category": post.category,
        "images": post.images or [],
        "created_at": post.created_at,
        "updated_at": post.updated_at,
        "favorites_count": favorites_count,
        "reviews_count": reviews_count,
        "average_rating": average_rating
    }


def check_images(images: list, limit: int) -> list:
    images = [url.strip() for url in images if url and url.strip()]
    if len(images) > limit:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"A post can have at most {limit} images"
        )
    return images


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED, summary="Create a new post")
def create_post(
    post: PostCreate,
    identity: Annotated[Identity, Depends(get_identity)],
    session: SessionDep,
    settings: SettingsDep
):
    """Create a new post"""
    title = clean(post.title)
    content = clean(post.content)
    if not title or not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Title and content must not be blank"
        )
    new_post = Post(
        title=title,
        content=content,
        excerpt=clean(post.excerpt),
        author=clean(post.author),
        category=clean(post.category),
        images=check_images(post.images, settings.MAX_POST_IMAGES) or None
    )
    session.add(new_post)
    session.commit()
    session.refresh(new_post)
    return build_post_response(session, new_post)


@router.get("", response_model=PostListResponse, summary="List posts")
def list_posts(
    session: SessionDep,
    category: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=12, ge=1, le=100)
):
    """List posts, newest first, filtered by category and a title/content search"""
    query = session.query(Post)
    if category:
        query = query.filter(Post.category == category)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Post.title.ilike(pattern), Post.content.ilike(pattern)))

    total = query.count()
    posts = query.order_by(Post.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        "items": posts,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit)
        }
    }


@router.get("/{post_id}", response_model=PostResponse, summary="Get a specific post")
def get_post(
    post_id: str,
    session: SessionDep
):
    """Get a specific post"""
    post = get_post_or_404(session, post_id)
    return build_post_response(session, post)


@router.put("/{post_id}", response_model=PostResponse, summary="Update a post")
def update_post(
    post_id: str,
    post_update: PostUpdate,
    identity: Annotated[Identity, Depends(get_identity)],
    session: SessionDep,
    settings: SettingsDep
):
    """Update a post, fields left out stay unchanged"""
    post = get_post_or_404(session, post_id)

    if post_update.title is not None:
        post.title = clean(post_update.title) or post.title
    if post_update.content is not None:
        post.content = clean(post_update.content) or post.content
    if post_update.excerpt is not None:
        post.excerpt = clean(post_update.excerpt)
    if post_update.author is not None:
        post.author = clean(post_update.author)
    if post_update.category is not None:
        post.category = clean(post_update.category)
    if post_update.images is not None:
        post.images = check_images(post_update.images, settings.MAX_POST_IMAGES) or None

    session.commit()
    session.refresh(post)
    return build_post_response(session, post)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a post with its reactions, favorites and reviews")
def delete_post(
    post_id: str,
    identity: Annotated[Identity, Depends(get_identity)],
    session: SessionDep
):
    """Delete a post with its reactions, favorites and reviews"""
    post = get_post_or_404(session, post_id)

    # 1. reactions on the post and on its gallery images
    SqlReactionRepository(session).delete_for_post(post.id, post.images or [])
    # 2. favorites
    SqlFavoriteRepository(session).delete_for_post(post.id)
    # 3. reviews
    session.query(Review).filter(Review.post_id == post.id).delete(synchronize_session=False)
    # 4. post
    session.delete(post)
    session.commit()
    return None
