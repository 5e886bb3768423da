# Freerider: Database Models
# Import all models here for SQLAlchemy discovery

from freerider.models.customer import CustomerRecord          # noqa
from freerider.models.vehicle import VehicleRecord            # noqa
from freerider.models.reservation import ReservationRecord    # noqa
from freerider.models.cancelled_hold import CancelledHoldRecord  # noqa
