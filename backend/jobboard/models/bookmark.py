from sqlalchemy import Column, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from jobboard.database import Base


class JobBookmark(Base):
    __tablename__ = "job_bookmarks"
    __table_args__ = (UniqueConstraint("user_id", "job_id"),)

    id = Column(Text, primary_key=True)
    user_id = Column(Text, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    job_id = Column(Text, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    saved_at = Column(Text, nullable=False)

    job = relationship("Job", back_populates="bookmarks")
