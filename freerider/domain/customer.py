"""
Customer entity: immutable id, validated mutable name/contact/status.
"""

from freerider.domain.base import check_id, check_non_empty, require_factory
from freerider.domain.enums import CustomerStatus


class Customer:
    Status = CustomerStatus

    def __init__(self, id, name, contact, status, *, _key=None):
        require_factory("Customer", _key)
        self._id = check_id("id", id)
        self.name = name
        self.contact = contact
        self.status = status

    @property
    def id(self) -> int:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, name):
        self._name = check_non_empty("name", name)

    @property
    def contact(self) -> str:
        return self._contact

    @contact.setter
    def contact(self, contact):
        # may be empty, never null
        if contact is None or not isinstance(contact, str):
            raise ValueError("contact is null")
        self._contact = contact

    @property
    def status(self) -> CustomerStatus:
        return self._status

    @status.setter
    def status(self, status):
        if status is None:
            raise ValueError("status is null")
        self._status = CustomerStatus.parse(status)

    def __eq__(self, other):
        if not isinstance(other, Customer):
            return NotImplemented
        return (self.id, self.name, self.contact, self.status) == (other.id, other.name, other.contact, other.status)

    def __hash__(self):
        return hash(("Customer", self.id))

    def __repr__(self):
        return f"<Customer {self.id} name={self.name!r} status={self.status}>"
