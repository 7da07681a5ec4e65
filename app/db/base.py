"""Import every model so Base.metadata is complete (Alembic, tests, seeding)."""
from app.db.session import Base  # noqa: F401
from app.models.user import User  # noqa: F401
from app.models.auth_session import AuthSession  # noqa: F401
from app.models.profile import Profile  # noqa: F401
from app.models.country import Country, State  # noqa: F401
from app.models.destination import CategoryDestination, Destination, DestinationTranslation  # noqa: F401
from app.models.booking import Booking, BookingItem  # noqa: F401
from app.models.tourist import Tourist  # noqa: F401
from app.models.payment import Payment  # noqa: F401
from app.models.sale import Sale  # noqa: F401
from app.models.email_log import EmailLog  # noqa: F401
from app.models.audit_log import AuditLog  # noqa: F401
