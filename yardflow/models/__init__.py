# YardFlow: Database Models
# Import all models here for SQLAlchemy discovery

from yardflow.models.site import Site, Gate, Dock                 # noqa
from yardflow.models.carrier import Carrier                       # noqa
from yardflow.models.user import User                             # noqa
from yardflow.models.slot import Door, YardLocation               # noqa
from yardflow.models.trailer import Trailer                       # noqa
from yardflow.models.appointment import Appointment               # noqa
from yardflow.models.move_request import MoveRequest              # noqa
