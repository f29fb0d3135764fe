# blogapp/models/post.py

from datetime import datetime
from blogapp import db

POST_TEXT = "TEXT"
POST_LINK = "LINK"
POST_IMAGE = "IMAGE"
POST_TYPES = (POST_TEXT, POST_LINK, POST_IMAGE)


class Post(db.Model):
    __tablename__ = "posts"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=True)
    post_type = db.Column(db.String(10), nullable=False, default=POST_TEXT)
    url = db.Column(db.String(500), nullable=True)          # LINK posts
    image_url = db.Column(db.String(500), nullable=True)    # IMAGE posts
    author_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    is_published = db.Column(db.Boolean, nullable=False, default=True, index=True)
    is_featured = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    author = db.relationship("User", backref=db.backref("posts", cascade="all, delete-orphan"))
    comments = db.relationship(
        "Comment", backref="post", cascade="all, delete-orphan",
        order_by="Comment.created_at",
    )
    ratings = db.relationship("Rating", backref="post", cascade="all, delete-orphan")
    bookmarks = db.relationship("Bookmark", backref="post", cascade="all, delete-orphan")

    def is_owned_by(self, user):
        return user is not None and user.is_authenticated and self.author_id == user.id

    def __repr__(self):
        return f"<Post {self.id} {self.title!r}>"
