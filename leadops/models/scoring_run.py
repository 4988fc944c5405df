"""
ScoringRunLog model — one row per recompute execution (batch or manual).
"""
from sqlalchemy import Column, Integer, Text, DateTime, JSON
from sqlalchemy.sql import func

from leadops.database import Base


class ScoringRunLog(Base):
    __tablename__ = 'scoring_runs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    execution_id = Column(Text, nullable=False, index=True)
    job_name = Column(Text, nullable=False)
    trigger = Column(Text, nullable=False, default='manual')   # manual / batch
    mode = Column(Text, nullable=False, default='full')        # full / scores_only
    status = Column(Text, nullable=False, default='started')   # started / success / failure
    details = Column(JSON, default=dict)
    processed_count = Column(Integer, nullable=True)
    error = Column(Text, nullable=True)
    started_at = Column(DateTime(timezone=True), server_default=func.now())
    finished_at = Column(DateTime(timezone=True), nullable=True)

    def to_dict(self):
        return {
            'id': self.id,
            'execution_id': self.execution_id,
            'job_name': self.job_name,
            'trigger': self.trigger,
            'mode': self.mode,
            'status': self.status,
            'details': self.details or {},
            'processed_count': self.processed_count,
            'error': self.error,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'finished_at': self.finished_at.isoformat() if self.finished_at else None,
        }
