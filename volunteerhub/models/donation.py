from sqlalchemy import Column, Integer, Float, Text, DateTime, ForeignKey, CheckConstraint, func
from sqlalchemy.orm import relationship

from volunteerhub.models.base import Base


class Donation(Base):
    """Monetary contribution to a project"""
    __tablename__ = "donations"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_donations_amount_positive"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    donor_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)  # Null for anonymous donations
    amount = Column(Float, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    project = relationship("Project", back_populates="donations")

    def __repr__(self):
        return f"<Donation(id={self.id}, project_id={self.project_id}, amount={self.amount})>"
