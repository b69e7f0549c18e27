from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from aqualink.db.base_class import Base, utcnow


class Anomaly(Base):
    __tablename__ = "anomalies"

    id = Column(Integer, primary_key=True, index=True)
    # References water_requests.id, the numeric id rather than the WDxxxxx code.
    request_id = Column(Integer, index=True, nullable=False)
    type = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    resolved = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
