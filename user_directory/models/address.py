from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from user_directory.database import Base


class Address(Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)

    company_address = Column(String(255), nullable=False)
    company_city = Column(String(100), nullable=False)
    company_state = Column(String(100), nullable=False)
    company_zip = Column(String(6), nullable=False)

    home_address = Column(String(255), nullable=False)
    home_city = Column(String(100), nullable=False)
    home_state = Column(String(100), nullable=False)
    home_zip = Column(String(6), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="address")
