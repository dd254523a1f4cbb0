from .printshops import Printshop
from .customers import Customer
from .users import User, UserPrintshopAccess
from .orders import Order, OrderItem, StatusHistoryEntry
from .attachments import Note, OrderFile
from .activities import Activity

__all__ = [
    'Printshop',
    'Customer',
    'User', 'UserPrintshopAccess',
    'Order', 'OrderItem', 'StatusHistoryEntry',
    'Note', 'OrderFile',
    'Activity',
]
