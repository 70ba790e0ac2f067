# Import models here so Alembic can discover metadata.
from tours_api.models.account import Account  # noqa: F401
from tours_api.models.account_role import AccountRoleAssignment  # noqa: F401
from tours_api.models.supplier import Supplier  # noqa: F401
from tours_api.models.tour import Tour  # noqa: F401
from tours_api.models.review import Review  # noqa: F401

# Owned by the booking/payment flows; mapped for schema completeness only.
from tours_api.models.booking import Booking  # noqa: F401
from tours_api.models.payment import Payment  # noqa: F401
