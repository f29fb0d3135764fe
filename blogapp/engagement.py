# blogapp/engagement.py
"""Reader ratings (1-5, one per user per post) and bookmarks."""

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from blogapp import db
from blogapp.errors import NotFoundError, ValidationError
from blogapp.models.bookmark import Bookmark
from blogapp.models.post import Post
from blogapp.models.rating import Rating, MAX_SCORE, MIN_SCORE


def _visible_post(user, post_id) -> Post:
    post = db.session.get(Post, post_id)
    if post is None or not (post.is_published or post.is_owned_by(user)):
        raise NotFoundError("Post not found.")
    return post


def _parse_score(score) -> int:
    try:
        score = int(score)
    except (TypeError, ValueError):
        raise ValidationError(f"Score must be a number between {MIN_SCORE} and {MAX_SCORE}.")
    if score < MIN_SCORE or score > MAX_SCORE:
        raise ValidationError(f"Score must be between {MIN_SCORE} and {MAX_SCORE}.")
    return score


# ------------------------------------------------------
# Ratings
# ------------------------------------------------------
def rate_post(user, post_id, score) -> Rating:
    """Add or replace ``user``'s score for a post."""
    score = _parse_score(score)
    post = _visible_post(user, post_id)

    rating = Rating.query.filter_by(user_id=user.id, post_id=post.id).first()
    if rating is None:
        rating = Rating(user_id=user.id, post_id=post.id, score=score)
        db.session.add(rating)
        try:
            db.session.commit()
            return rating
        except IntegrityError:
            # Rated twice concurrently; keep the latest score.
            db.session.rollback()
            rating = Rating.query.filter_by(user_id=user.id, post_id=post.id).one()

    rating.score = score
    db.session.commit()
    return rating


def remove_rating(user, post_id):
    Rating.query.filter_by(user_id=user.id, post_id=post_id).delete(synchronize_session=False)
    db.session.commit()


def user_rating(user, post_id):
    if user is None or not user.is_authenticated:
        return None
    rating = Rating.query.filter_by(user_id=user.id, post_id=post_id).first()
    return rating.score if rating else None


def rating_summary(post_id):
    """``(average rounded to one decimal, count)``; ``(0.0, 0)`` when unrated."""
    average, count = (
        db.session.query(func.avg(Rating.score), func.count(Rating.id))
        .filter(Rating.post_id == post_id)
        .one()
    )
    return (round(float(average), 1) if average is not None else 0.0), count


def rating_distribution(post_id):
    rows = (
        db.session.query(Rating.score, func.count(Rating.id))
        .filter(Rating.post_id == post_id)
        .group_by(Rating.score)
        .all()
    )
    distribution = {score: 0 for score in range(MIN_SCORE, MAX_SCORE + 1)}
    distribution.update(dict(rows))
    return distribution


# ------------------------------------------------------
# Bookmarks
# ------------------------------------------------------
def is_bookmarked(user, post_id) -> bool:
    if user is None or not user.is_authenticated:
        return False
    return Bookmark.query.filter_by(user_id=user.id, post_id=post_id).first() is not None


def toggle_bookmark(user, post_id) -> bool:
    """Add or remove a bookmark. Returns True when the post is now bookmarked."""
    post = _visible_post(user, post_id)
    existing = Bookmark.query.filter_by(user_id=user.id, post_id=post.id).first()
    if existing is not None:
        db.session.delete(existing)
        db.session.commit()
        return False

    db.session.add(Bookmark(user_id=user.id, post_id=post.id))
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
    return True


def bookmarked_posts(user):
    return (
        Post.query.join(Bookmark, Bookmark.post_id == Post.id)
        .filter(Bookmark.user_id == user.id)
        .order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
        .all()
    )
