# blogapp/models/bookmark.py

from datetime import datetime
from blogapp import db


class Bookmark(db.Model):
    __tablename__ = "bookmarks"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    post_id = db.Column(db.Integer, db.ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    user = db.relationship("User", backref=db.backref("bookmarks", cascade="all, delete-orphan"))

    __table_args__ = (
        db.UniqueConstraint("user_id", "post_id", name="uq_bookmarks_user_post"),
    )

    def __repr__(self):
        return f"<Bookmark {self.user_id} -> {self.post_id}>"
