# blogapp/models/rating.py

from datetime import datetime
from blogapp import db

MIN_SCORE = 1
MAX_SCORE = 5


class Rating(db.Model):
    """One score per user per post; rating again replaces the score."""

    __tablename__ = "ratings"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    post_id = db.Column(db.Integer, db.ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    score = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship("User", backref=db.backref("ratings", cascade="all, delete-orphan"))

    __table_args__ = (
        db.UniqueConstraint("user_id", "post_id", name="uq_ratings_user_post"),
        db.CheckConstraint(f"score BETWEEN {MIN_SCORE} AND {MAX_SCORE}", name="ck_ratings_score"),
    )

    def __repr__(self):
        return f"<Rating {self.score} by {self.user_id} on {self.post_id}>"
