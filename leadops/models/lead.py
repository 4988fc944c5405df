"""
Lead model — one row per marketing lead, owned by exactly one client.

lead_score and conversion_rates are written only by the scoring engine.
"""
from sqlalchemy import Column, Integer, Text, Boolean, DateTime, JSON, Index
from sqlalchemy.sql import func

from leadops.database import Base


class Lead(Base):
    __tablename__ = 'leads'

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(Text, nullable=False)
    name = Column(Text, default='')
    email = Column(Text, default='')
    phone = Column(Text, default='')
    service = Column(Text, default='')
    ad_set_name = Column(Text, default='')
    ad_name = Column(Text, default='')
    zip = Column(Text, default='')
    lead_date = Column(Text, nullable=True)            # ISO date string as ingested
    status = Column(Text, nullable=False, default='new')
    unqualified_reason = Column(Text, default='')
    lead_score = Column(Integer, nullable=True)        # 0-100, null until scored
    conversion_rates = Column(JSON, default=dict)      # {service, ad_set_name, ad_name, lead_date, zip}
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('ix_leads_client_id_is_deleted', 'client_id', 'is_deleted'),
    )
