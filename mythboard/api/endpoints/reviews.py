from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mythboard.api.deps import SessionDep, get_identity, get_post_or_404
from mythboard.core.errors import StoreConflictError
from mythboard.core.identity import Identity
from mythboard.models.review import Review
from mythboard.schemas.review import ReviewListResponse, ReviewResponse, ReviewUpsert

router = APIRouter()


def rating_stats(session: Session, post_id: str) -> tuple[float, int]:
    """Average star rating (rounded to 2 places, 0 without reviews) and review count"""
    average, count = session.execute(
        select(func.avg(Review.rating), func.count(Review.id)).where(Review.post_id == post_id)
    ).one()
    return round(float(average or 0), 2), count


@router.get("", response_model=ReviewListResponse, summary="List reviews of a post")
def list_reviews(
    post_id: str,
    session: SessionDep
):
    """List reviews of a post, newest first"""
    get_post_or_404(session, post_id)
    reviews = session.query(Review).filter(Review.post_id == post_id).order_by(Review.created_at.desc()).all()
    average, count = rating_stats(session, post_id)
    return {"items": reviews, "average_rating": average, "reviews_count": count}


@router.put("", response_model=ReviewResponse, summary="Create or replace my review of a post")
def upsert_review(
    post_id: str,
    review_in: ReviewUpsert,
    identity: Annotated[Identity, Depends(get_identity)],
    session: SessionDep
):
    """Create the caller's review, or replace its rating and comment"""
    get_post_or_404(session, post_id)
    review = session.query(Review).filter(
        Review.post_id == post_id,
        Review.user_identifier == identity.value
    ).first()
    if review is None:
        review = Review(post_id=post_id, user_identifier=identity.value)
        session.add(review)
    review.rating = review_in.rating
    review.comment = review_in.comment
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise StoreConflictError("Your review was saved by another request") from e
    session.refresh(review)
    return review


@router.delete("", status_code=status.HTTP_204_NO_CONTENT, summary="Delete my review of a post")
def delete_review(
    post_id: str,
    identity: Annotated[Identity, Depends(get_identity)],
    session: SessionDep
):
    """Delete the caller's review of a post"""
    review = session.query(Review).filter(
        Review.post_id == post_id,
        Review.user_identifier == identity.value
    ).first()
    if not review:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Review not found"
        )
    session.delete(review)
    session.commit()
    return None
