from sqlalchemy import TIMESTAMP, BigInteger, Column, Integer, Text
from sqlalchemy.sql import func

from tgrouter.database import Base


class StoredSession(Base):
    __tablename__ = "session_records"

    author_id = Column(BigInteger, primary_key=True, autoincrement=False)
    chat_id = Column(BigInteger, primary_key=True, autoincrement=False)
    state_id = Column(Integer, nullable=False)
    data = Column(Text, nullable=False, default="")
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
