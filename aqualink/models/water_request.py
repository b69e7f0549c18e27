import enum

from sqlalchemy import Column, DateTime, Float, Integer, String, Text

from aqualink.db.base_class import Base, enum_column, utcnow


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    IN_TRANSIT = "in_transit"
    COMPLETED = "completed"


class Urgency(str, enum.Enum):
    NORMAL = "normal"
    URGENT = "urgent"
    EMERGENCY = "emergency"


class WaterRequest(Base):
    __tablename__ = "water_requests"

    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(String, unique=True, index=True, nullable=False)
    user_id = Column(Integer, index=True, nullable=False)
    address = Column(Text, nullable=False)
    water_amount = Column(Integer, nullable=False)  # liters
    urgency = Column(enum_column(Urgency), nullable=False)
    notes = Column(Text, nullable=True)

    status = Column(enum_column(RequestStatus), default=RequestStatus.PENDING, nullable=False)
    driver_id = Column(Integer, index=True, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    in_transit_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    rating = Column(Integer, nullable=True)
    feedback = Column(Text, nullable=True)

    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
