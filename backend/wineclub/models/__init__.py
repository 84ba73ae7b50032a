# Import models here so metadata.create_all() can discover them.
from wineclub.models.user import User  # noqa: F401
from wineclub.models.business import Business  # noqa: F401
from wineclub.models.business_user import BusinessUser  # noqa: F401

# Catalog and subscriptions (tenant-owned resources)
from wineclub.models.membership_plan import MembershipPlan  # noqa: F401
from wineclub.models.price import Price  # noqa: F401
from wineclub.models.member import Member  # noqa: F401
from wineclub.models.subscription import Subscription  # noqa: F401

from wineclub.models.audit_log import AuditLog  # noqa: F401
