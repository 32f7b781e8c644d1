from sqlalchemy import Boolean, Column, ForeignKey, Text
from jobboard.database import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Text, primary_key=True)
    user_id = Column(Text, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    # "metadata" is reserved on declarative classes
    metadata_json = Column("metadata", Text, nullable=False, default="{}")
    related_id = Column(Text)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(Text, nullable=False)
