# blogapp/posts.py
"""
Writing and managing one's own posts.

Only the author may edit, delete or (un)publish a post. Admins moderate
other people's posts through ``blogapp.moderation``.
"""

import logging

from blogapp import db
from blogapp.audit import audit_log
from blogapp.errors import AuthorizationDenied, NotFoundError, ValidationError
from blogapp.models.admin_log import AdminActionType
from blogapp.models.post import Post, POST_IMAGE, POST_LINK, POST_TEXT, POST_TYPES

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 200


def _clean(value):
    value = (value or "").strip()
    return value or None


def _validate(title, content, post_type, url, image_url):
    if not title:
        raise ValidationError("Title is required.")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title must be at most {TITLE_MAX_LENGTH} characters.")
    if post_type not in POST_TYPES:
        raise ValidationError("Unknown post type.")
    if post_type == POST_LINK and not url:
        raise ValidationError("A link post needs a URL.")
    if post_type == POST_IMAGE and not image_url:
        raise ValidationError("An image post needs an image URL.")
    if post_type == POST_TEXT and not content:
        raise ValidationError("Post content cannot be empty.")


def get_own_post(user, post_id) -> Post:
    post = db.session.get(Post, post_id)
    if post is None:
        raise NotFoundError("Post not found.")
    if not post.is_owned_by(user):
        raise AuthorizationDenied("You can only manage your own posts.")
    return post


def posts_by_author(user, published_only=False):
    query = Post.query.filter_by(author_id=user.id)
    if published_only:
        query = query.filter_by(is_published=True)
    return query.order_by(Post.created_at.desc(), Post.id.desc()).all()


def create_post(author, title, content, post_type=POST_TEXT, url=None, image_url=None,
                publish=True, ip=None):
    title = _clean(title)
    content = _clean(content)
    url = _clean(url)
    image_url = _clean(image_url)
    post_type = (post_type or POST_TEXT).upper()
    _validate(title, content, post_type, url, image_url)

    post = Post(
        title=title,
        content=content,
        post_type=post_type,
        url=url,
        image_url=image_url,
        author_id=author.id,
        is_published=bool(publish),
    )
    db.session.add(post)
    db.session.commit()

    if author.is_admin():
        audit_log.log_post_action(author, AdminActionType.POST_CREATE, post.id,
                                  "Post created", ip, details=f"Title: {title}")
    logger.info("Post %s created by %s", post.id, author.username)
    return post


def update_post(user, post_id, title, content, url=None, image_url=None):
    post = get_own_post(user, post_id)
    title = _clean(title)
    content = _clean(content)
    url = _clean(url)
    image_url = _clean(image_url)
    _validate(title, content, post.post_type, url, image_url)

    post.title = title
    post.content = content
    post.url = url
    post.image_url = image_url
    db.session.commit()
    return post


def delete_post(user, post_id):
    post = get_own_post(user, post_id)
    db.session.delete(post)
    db.session.commit()
    logger.info("Post %s deleted by its author %s", post_id, user.username)


def toggle_publish(user, post_id):
    post = get_own_post(user, post_id)
    post.is_published = not post.is_published
    db.session.commit()
    return post
