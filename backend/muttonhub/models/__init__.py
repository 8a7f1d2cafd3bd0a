from .parties import Buyer, Seller
from .transactions import BuyerTransaction, SellerTransaction
from .audit import AuditLog
from .auth import User, UserRole, SessionToken

__all__ = [
    'Buyer', 'Seller',
    'BuyerTransaction', 'SellerTransaction',
    'AuditLog',
    'User', 'UserRole', 'SessionToken',
]
