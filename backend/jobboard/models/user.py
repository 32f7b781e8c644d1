from sqlalchemy import Boolean, Column, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from jobboard.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Text, primary_key=True)
    email = Column(Text, nullable=False, unique=True)
    first_name = Column(Text)
    last_name = Column(Text)
    phone = Column(Text)
    user_type = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    deleted_at = Column(Text)
    created_at = Column(Text, nullable=False)

    profile = relationship("UserProfile", back_populates="user", uselist=False, cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        name = " ".join(p for p in (self.first_name, self.last_name) if p)
        return name or self.email


class ApiToken(Base):
    __tablename__ = "api_tokens"

    token_hash = Column(Text, primary_key=True)
    user_id = Column(Text, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    expires_at = Column(Float, nullable=False)


class UserProfile(Base):
    __tablename__ = "user_profiles"

    user_id = Column(Text, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    bio = Column(Text)
    # JSON-encoded list of strings
    skills = Column(Text, nullable=False, default="[]")
    linkedin_url = Column(Text)
    github_url = Column(Text)
    portfolio_url = Column(Text)
    website_url = Column(Text)
    years_of_experience = Column(Integer, nullable=False, default=0)
    current_position = Column(Text)
    preferred_location = Column(Text)
    preferred_job_types = Column(Text, nullable=False, default="[]")
    updated_at = Column(Text, nullable=False)

    user = relationship("User", back_populates="profile")


class Resume(Base):
    __tablename__ = "resumes"

    id = Column(Text, primary_key=True)
    user_id = Column(Text, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    file_name = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False)
