from .tenancy import Shop
from .auth import User
from .permissions import PermissionRecord
from .customers import Customer
from .records import OptometryRecord

__all__ = [
    'Shop',
    'User',
    'PermissionRecord',
    'Customer',
    'OptometryRecord',
]
