from sqlalchemy import Column, Integer, String, DateTime
from khatabook.db.base import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False, default="")  # shop / display name
    photo_url = Column(String(1024), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
