import enum

from sqlalchemy import Column, DateTime, Integer, String

from aqualink.db.base_class import Base, enum_column, utcnow


class UserRole(str, enum.Enum):
    RESIDENT = "resident"
    DRIVER = "driver"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    # Identity lives with the external provider; this is a hashed placeholder.
    hashed_password = Column("password", String, nullable=False)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    role = Column(enum_column(UserRole), default=UserRole.RESIDENT, nullable=False)
    profile_image_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
