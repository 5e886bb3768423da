"""
Customer table.
Rows are raw storage: status is a plain string so rows holding values outside
the Customer.Status enum can still be read (and dropped) by the data store.
"""

from sqlalchemy import Column, Integer, String
from freerider.database import Base


class CustomerRecord(Base):
    __tablename__ = "customer"

    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(60), nullable=False, index=True)
    contact = Column(String(120))
    status = Column(String(20))     # Active | InRegistration | Terminated

    def __repr__(self):
        return f"<CustomerRecord {self.id} name={self.name} status={self.status}>"
