from sqlalchemy import Column, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from jobboard.database import Base

JOB_STATUSES = ("draft", "open", "closed", "filled")
# Statuses in which a job accepts new applications.
ACCEPTING_STATUSES = ("open",)


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Text, primary_key=True)
    employer_id = Column(Text, ForeignKey("employers.id", ondelete="CASCADE"), nullable=False)
    company_id = Column(Text, ForeignKey("companies.id", ondelete="SET NULL"))
    title = Column(Text, nullable=False)
    description = Column(Text)
    location = Column(Text)
    employment_type = Column(Text)
    skills_required = Column(Text, nullable=False, default="[]")
    status = Column(Text, nullable=False, default="open")
    applications_count = Column(Integer, nullable=False, default=0)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    employer = relationship("Employer")
    company = relationship("Company")
    applications = relationship("JobApplication", back_populates="job", cascade="all, delete-orphan")
    bookmarks = relationship("JobBookmark", back_populates="job", cascade="all, delete-orphan")
