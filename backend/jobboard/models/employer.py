from sqlalchemy import Column, ForeignKey, Text
from sqlalchemy.orm import relationship
from jobboard.database import Base


class Company(Base):
    __tablename__ = "companies"

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)


class Employer(Base):
    __tablename__ = "employers"

    id = Column(Text, primary_key=True)
    user_id = Column(Text, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    company_id = Column(Text, ForeignKey("companies.id", ondelete="SET NULL"))

    user = relationship("User")
    company = relationship("Company")
