"""
Cancelled-hold table.
When an InquiryConfirmed reservation is cancelled or runs out, its row is
deleted from `reservation` and copied here in the same transaction, so a later
cancel or resubmission of that id still finds it as Cancelled.
No foreign keys: a tombstone never blocks deleting a customer or vehicle.
"""

from sqlalchemy import BigInteger, Column, DateTime, Integer, String
from freerider.database import Base


class CancelledHoldRecord(Base):
    __tablename__ = "cancelled_hold"

    id = Column(Integer, primary_key=True, autoincrement=False)   # former reservation.id
    customer_id = Column(Integer, nullable=False, index=True)
    vehicle_id = Column(Integer, nullable=False)
    begin = Column(DateTime)
    end = Column(DateTime)
    pickup = Column(String(48))
    dropoff = Column(String(48))
    cancelled_at = Column(BigInteger, nullable=False)   # ms since epoch, UTC

    def __repr__(self):
        return f"<CancelledHoldRecord {self.id} customer={self.customer_id} cancelled_at={self.cancelled_at}>"
