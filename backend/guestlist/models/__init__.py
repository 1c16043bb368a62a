# Import models here so Alembic can discover metadata.
from guestlist.models.user import User  # noqa: F401
from guestlist.models.user_role import UserRole  # noqa: F401

# Events, promoters and attribution
from guestlist.models.event import Event  # noqa: F401
from guestlist.models.promoter import Promoter  # noqa: F401
from guestlist.models.promoter_event_qr import PromoterEventQR  # noqa: F401
from guestlist.models.qr_scan import QRScan  # noqa: F401

# Guestlist + commissions
from guestlist.models.guest import Guest  # noqa: F401
from guestlist.models.commission_ledger import CommissionLedgerEntry  # noqa: F401
