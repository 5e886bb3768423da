"""
Reservation table.
begin/end hold wall-clock date-times in the reservation time zone.
hold_expires (ms since epoch, UTC) is set only while a reservation is
InquiryConfirmed; the hold sweeper purges rows whose hold has run out.
"""

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Integer, String
from freerider.database import Base


class ReservationRecord(Base):
    __tablename__ = "reservation"

    id = Column(Integer, primary_key=True, autoincrement=False)
    customer_id = Column(Integer, ForeignKey("customer.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicle.id"), nullable=False, index=True)
    begin = Column(DateTime)
    end = Column(DateTime)
    pickup = Column(String(48))
    dropoff = Column(String(48))
    status = Column(String(20), index=True)   # Inquired | InquiryConfirmed | Booked | Cancelled
    hold_expires = Column(BigInteger)

    def __repr__(self):
        return f"<ReservationRecord {self.id} customer={self.customer_id} vehicle={self.vehicle_id} status={self.status}>"
