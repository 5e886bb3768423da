from pydantic import BaseModel

from freerider.domain.customer import Customer


class CustomerOut(BaseModel):
    id: int
    name: str
    contact: str
    status: str     # Active | InRegistration | Terminated

    @classmethod
    def from_entity(cls, customer: Customer) -> "CustomerOut":
        return cls(id=customer.id, name=customer.name, contact=customer.contact,
                   status=customer.status.value)


class CountOut(BaseModel):
    count: int
