from sqlalchemy import Column, String, BigInteger
from .base import Base


class IdSequence(Base):
    """Next counter value for each master-table id prefix."""
    __tablename__ = "id_sequences"

    kind = Column(String(32), primary_key=True)
    next_value = Column(BigInteger, nullable=False, default=1)
