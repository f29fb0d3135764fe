# blogapp/routes/blog.py

from flask import Blueprint, render_template, request, redirect, url_for, flash, abort
from flask_login import login_required, current_user

from blogapp import db, engagement, posts
from blogapp.errors import BlogError
from blogapp.forms import PostForm
from blogapp.models.comment import Comment
from blogapp.models.post import Post
from blogapp.settings_store import settings_store

blog_bp = Blueprint("blog", __name__)


@blog_bp.route("/")
@blog_bp.route("/home")
def home():
    featured = (
        Post.query.filter_by(is_published=True, is_featured=True)
        .order_by(Post.created_at.desc())
        .limit(5)
        .all()
    )
    latest = (
        Post.query.filter_by(is_published=True)
        .order_by(Post.created_at.desc())
        .limit(50)
        .all()
    )
    return render_template("home.html", featured=featured, posts=latest)


# ======================================================
# READING + COMMENTS
# ======================================================
@blog_bp.route("/post/<int:post_id>", methods=["GET", "POST"])
def post_detail(post_id):
    post = db.session.get(Post, post_id)
    if post is None or (not post.is_published and not (
        post.is_owned_by(current_user) or (current_user.is_authenticated and current_user.is_admin())
    )):
        abort(404)

    comments_enabled = settings_store.is_comments_enabled()

    if request.method == "POST":
        if not current_user.is_authenticated:
            return redirect(url_for("auth.login", next=request.path))
        return _add_comment(post, comments_enabled)

    average, count = engagement.rating_summary(post.id)
    return render_template(
        "post.html",
        post=post,
        comments=post.comments,
        comments_enabled=comments_enabled,
        is_owner=post.is_owned_by(current_user),
        average_rating=average,
        rating_count=count,
        my_rating=engagement.user_rating(current_user, post.id),
        bookmarked=engagement.is_bookmarked(current_user, post.id),
    )


def _add_comment(post, comments_enabled):
    if not comments_enabled:
        flash("Comments are currently disabled.", "warning")
        return redirect(url_for("blog.post_detail", post_id=post.id))

    content = (request.form.get("content") or "").strip()
    if not content:
        flash("Comment cannot be empty.", "danger")
        return redirect(url_for("blog.post_detail", post_id=post.id))

    db.session.add(Comment(post_id=post.id, user_id=current_user.id, content=content[:2000]))
    db.session.commit()
    flash("Comment added.", "success")
    return redirect(url_for("blog.post_detail", post_id=post.id))


# ======================================================
# WRITING
# ======================================================
@blog_bp.route("/write", methods=["GET", "POST"])
@login_required
def write():
    form = PostForm()
    if form.validate_on_submit():
        try:
            post = posts.create_post(
                current_user._get_current_object(),
                form.title.data, form.content.data, form.post_type.data,
                form.url.data, form.image_url.data, form.publish.data,
            )
        except BlogError as exc:
            flash(str(exc), exc.category)
            return render_template("write.html", form=form, post=None)
        flash("Your post was published." if post.is_published else "Draft saved.", "success")
        return redirect(url_for("blog.post_detail", post_id=post.id))

    return render_template("write.html", form=form, post=None)


@blog_bp.route("/post/<int:post_id>/edit", methods=["GET", "POST"])
@login_required
def edit_post(post_id):
    try:
        post = posts.get_own_post(current_user, post_id)
    except BlogError as exc:
        flash(str(exc), exc.category)
        return redirect(url_for("blog.home"))

    form = PostForm(obj=post)
    if form.validate_on_submit():
        try:
            posts.update_post(current_user, post_id, form.title.data, form.content.data,
                              form.url.data, form.image_url.data)
        except BlogError as exc:
            flash(str(exc), exc.category)
            return render_template("write.html", form=form, post=post)
        flash("Your post was updated.", "success")
        return redirect(url_for("blog.post_detail", post_id=post_id))

    return render_template("write.html", form=form, post=post)


@blog_bp.route("/post/<int:post_id>/delete", methods=["POST"])
@login_required
def delete_post(post_id):
    try:
        posts.delete_post(current_user, post_id)
    except BlogError as exc:
        flash(str(exc), exc.category)
        return redirect(url_for("blog.home"))
    flash("Your post was deleted.", "success")
    return redirect(url_for("blog.my_posts"))


@blog_bp.route("/post/<int:post_id>/toggle-publish", methods=["POST"])
@login_required
def toggle_publish(post_id):
    try:
        post = posts.toggle_publish(current_user, post_id)
    except BlogError as exc:
        flash(str(exc), exc.category)
        return redirect(url_for("blog.home"))
    flash("Your post is now public." if post.is_published else "Your post is now a draft.", "success")
    return redirect(url_for("blog.post_detail", post_id=post_id))


@blog_bp.route("/my-posts")
@login_required
def my_posts():
    return render_template("my_posts.html", posts=posts.posts_by_author(current_user))


# ======================================================
# RATINGS + BOOKMARKS
# ======================================================
@blog_bp.route("/post/<int:post_id>/rate", methods=["POST"])
@login_required
def rate(post_id):
    try:
        engagement.rate_post(current_user, post_id, request.form.get("score"))
        flash("Thanks for rating.", "success")
    except BlogError as exc:
        flash(str(exc), exc.category)
    return redirect(url_for("blog.post_detail", post_id=post_id))


@blog_bp.route("/post/<int:post_id>/bookmark", methods=["POST"])
@login_required
def bookmark(post_id):
    try:
        added = engagement.toggle_bookmark(current_user, post_id)
        flash("Added to bookmarks." if added else "Removed from bookmarks.", "success")
    except BlogError as exc:
        flash(str(exc), exc.category)
    return redirect(url_for("blog.post_detail", post_id=post_id))


@blog_bp.route("/bookmarks")
@login_required
def bookmarks():
    return render_template("bookmarks.html", posts=engagement.bookmarked_posts(current_user))
