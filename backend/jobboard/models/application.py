from sqlalchemy import Column, Float, ForeignKey, Text
from sqlalchemy.orm import relationship
from jobboard.database import Base


class JobApplication(Base):
    __tablename__ = "job_applications"

    id = Column(Text, primary_key=True)
    user_id = Column(Text, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    job_id = Column(Text, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    status = Column(Text, nullable=False, default="pending")
    cover_letter = Column(Text)
    resume_id = Column(Text, ForeignKey("resumes.id", ondelete="SET NULL"))
    portfolio_url = Column(Text)
    expected_salary = Column(Float)
    availability_date = Column(Text)
    applied_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    job = relationship("Job", back_populates="applications")
