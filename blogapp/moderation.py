# blogapp/moderation.py
"""Post and comment moderation from the admin panel."""

import logging

from blogapp import db
from blogapp.audit import audit_log
from blogapp.errors import NotFoundError, ValidationError
from blogapp.models.admin_log import AdminActionType
from blogapp.models.comment import Comment
from blogapp.models.post import Post

logger = logging.getLogger(__name__)


def get_post(post_id) -> Post:
    post = db.session.get(Post, post_id)
    if post is None:
        raise NotFoundError("Post not found.")
    return post


def list_posts(page=0, size=20):
    total = Post.query.count()
    items = Post.query.order_by(Post.created_at.desc(), Post.id.desc()).offset(page * size).limit(size).all()
    return items, total


def list_comments(limit=100):
    return Comment.query.order_by(Comment.created_at.desc(), Comment.id.desc()).limit(limit).all()


def update_post(admin, post_id, title, content, ip):
    post = get_post(post_id)
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title is required.")
    post.title = title[:200]
    post.content = (content or "").strip() or None
    db.session.commit()

    audit_log.log_post_action(admin, AdminActionType.POST_UPDATE, post.id, "Post updated", ip)
    logger.info("Post %s updated by admin %s", post.id, admin.username)
    return post


def toggle_published(admin, post_id, ip):
    post = get_post(post_id)
    post.is_published = not post.is_published
    db.session.commit()

    if post.is_published:
        audit_log.log_post_action(admin, AdminActionType.POST_PUBLISH, post.id, "Post published", ip)
    else:
        audit_log.log_post_action(admin, AdminActionType.POST_UNPUBLISH, post.id, "Post unpublished", ip)
    return post


def toggle_featured(admin, post_id, ip):
    post = get_post(post_id)
    post.is_featured = not post.is_featured
    db.session.commit()

    description = "Post featured" if post.is_featured else "Post unfeatured"
    audit_log.log_post_action(admin, AdminActionType.POST_FEATURE, post.id, description, ip)
    return post


def delete_post(admin, post_id, ip):
    post = get_post(post_id)
    title = post.title
    db.session.delete(post)
    db.session.commit()

    audit_log.log_post_action(admin, AdminActionType.POST_DELETE, post_id,
                              "Post deleted", ip, details=f"Title: {title}")
    logger.info("Post %s deleted by admin %s", post_id, admin.username)


def delete_comment(admin, comment_id, ip):
    comment = db.session.get(Comment, comment_id)
    if comment is None:
        raise NotFoundError("Comment not found.")
    details = f"Post: {comment.post_id}, Author: {comment.user.username if comment.user else '?'}"
    db.session.delete(comment)
    db.session.commit()

    audit_log.log_comment_delete(admin, comment_id, ip, details=details)
    logger.info("Comment %s deleted by admin %s", comment_id, admin.username)
