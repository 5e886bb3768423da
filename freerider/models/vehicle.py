"""
Vehicle table (the rental fleet).
Referenced by reservation.vehicle_id.
"""

from sqlalchemy import Column, Integer, String
from freerider.database import Base


class VehicleRecord(Base):
    __tablename__ = "vehicle"

    id = Column(Integer, primary_key=True, autoincrement=False)
    make = Column(String(40), nullable=False)
    model = Column(String(40), nullable=False)
    seats = Column(Integer, nullable=False)
    category = Column(String(20))   # Sedan | SUV | Convertible | Van | Bike
    power = Column(String(20))      # Gasoline | Diesel | Electric | Hybrid | Hydrogen
    status = Column(String(20))     # Active | Serviced | Terminated

    def __repr__(self):
        return f"<VehicleRecord {self.id} {self.make} {self.model} status={self.status}>"
