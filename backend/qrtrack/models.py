from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, Text, ForeignKey
from sqlalchemy.orm import relationship
from .db import Base
from .config import DEFAULT_COLOR, DEFAULT_BACKGROUND_COLOR
from .utils import utc_now


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)


class QRLink(Base):
    __tablename__ = "qr_links"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    target_url = Column(Text, nullable=False)
    color = Column(String(9), default=DEFAULT_COLOR, nullable=False)
    background_color = Column(String(9), default=DEFAULT_BACKGROUND_COLOR, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    owner = relationship("User")
    scans = relationship("Scan", back_populates="qr_link", cascade="all, delete-orphan", passive_deletes=True)


class Scan(Base):
    __tablename__ = "scans"
    id = Column(Integer, primary_key=True, index=True)
    qr_link_id = Column(Integer, ForeignKey("qr_links.id", ondelete="CASCADE"), nullable=False, index=True)
    timestamp = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    # mobile / desktop / tablet / unknown
    device_type = Column(String(16), nullable=True)
    browser = Column(String, nullable=True)
    os = Column(String, nullable=True)
    country = Column(String, nullable=True)
    city = Column(String, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    referrer = Column(Text, nullable=True)

    qr_link = relationship("QRLink", back_populates="scans")
