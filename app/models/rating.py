from sqlalchemy import Column, Integer, Uuid, PrimaryKeyConstraint
from app.database import Base

class Rating(Base):
    __tablename__ = "ratings"

    user_id = Column(Uuid, nullable=False)
    # No foreign key: deleting a movie leaves its ratings in place
    movie_id = Column(Uuid, nullable=False, index=True)
    rating = Column(Integer, nullable=False)  # 1-5, enforced by RatingService

    # Ensure one rating per user per movie
    __table_args__ = (
        PrimaryKeyConstraint('user_id', 'movie_id', name='unique_user_movie_rating'),
    )

    def __repr__(self):
        return f"<Rating(user_id={self.user_id}, movie_id={self.movie_id}, rating={self.rating})>"
