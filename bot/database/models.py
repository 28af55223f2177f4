from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, CheckConstraint, Index
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

class Participant(Base):
    __tablename__ = 'participants'

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True, index=True)

    # Leaderboard state
    points = Column(Integer, nullable=False, default=0)  # Written by claims and reset only
    rank = Column(Integer, nullable=False, default=0)    # Written by the ranking engine only

    # Metadata
    registered_at = Column(DateTime, nullable=False, default=func.now())

    # Relationships
    claims = relationship("ClaimHistory", back_populates="participant")

    __table_args__ = (
        CheckConstraint('points >= 0', name='ck_participant_points_non_negative'),
        Index('ix_participants_ranking', 'points', 'registered_at', 'id'),
    )

    def __repr__(self):
        return f"<Participant(id={self.id}, name='{self.name}', points={self.points}, rank={self.rank})>"

class ClaimHistory(Base):
    __tablename__ = 'claim_history'

    id = Column(Integer, primary_key=True)
    participant_id = Column(Integer, ForeignKey('participants.id'), nullable=False, index=True)

    # Snapshot of the participant at claim time
    participant_name = Column(String(100), nullable=False)
    points_gained = Column(Integer, nullable=False)
    total_points_after = Column(Integer, nullable=False)

    timestamp = Column(DateTime, nullable=False, default=func.now(), index=True)

    participant = relationship("Participant", back_populates="claims")

    __table_args__ = (
        CheckConstraint('points_gained > 0', name='ck_claim_points_positive'),
    )

    def __repr__(self):
        return f"<ClaimHistory(participant='{self.participant_name}', gained={self.points_gained}, total={self.total_points_after})>"
