from sqlalchemy import Column, Integer, String, BigInteger
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Largest value a signed 64-bit INTEGER column holds
MAX_SQL_INT = 2**63 - 1


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    surname = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    # unix milliseconds
    created_at = Column(BigInteger, nullable=False)
