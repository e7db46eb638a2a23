from sqlalchemy import Column, DateTime, Index, Integer, String

from wage_engine.db.session import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default="viewer")
    token_hash = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (Index("ix_users_token_hash", "token_hash"),)
