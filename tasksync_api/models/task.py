from sqlalchemy import Column, BigInteger, String, Boolean, Text, TIMESTAMP, text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from tasksync_api.models.base import Base

PRIORITIES = ("low", "medium", "high", "urgent")


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint("priority IN ('low', 'medium', 'high', 'urgent')", name="check_task_priority"),
        {"schema": "tasks"}
    )

    task_id = Column(BigInteger, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey("auth.users.user_id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    completed = Column(Boolean, nullable=False, default=False, server_default=text("FALSE"))
    priority = Column(String(10), nullable=False, default="medium", server_default="medium")
    due_date = Column(TIMESTAMP)
    created_at = Column(TIMESTAMP, nullable=False, server_default=text("NOW()"))
    updated_at = Column(TIMESTAMP, nullable=False, server_default=text("NOW()"))

    user = relationship("User", back_populates="tasks")
