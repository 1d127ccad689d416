from .tenancy import Shop
from .auth import Profile, CustomRole, SessionToken
from .inventory import Product, InventoryLog, DamagedInventory
from .sales import Transaction, ReturnRecord
from .purchasing import Supplier, PurchaseEntry, PurchaseEntryProduct
from .communications import Notification

__all__ = [
    'Shop',
    'Profile', 'CustomRole', 'SessionToken',
    'Product', 'InventoryLog', 'DamagedInventory',
    'Transaction', 'ReturnRecord',
    'Supplier', 'PurchaseEntry', 'PurchaseEntryProduct',
    'Notification',
]
