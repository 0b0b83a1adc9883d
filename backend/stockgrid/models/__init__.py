from .cashiers import Cashier
from .inventory import Product, SackPrice, SpecialPrice, PerKiloPrice
from .sales import Sale, SaleItem, Order
from .documents import Delivery, DeliveryItem, Transfer, Kahon, KahonItem, Inventory, InventoryItem
from .grid import Sheet, Row, Cell

__all__ = [
    'Cashier',
    'Product', 'SackPrice', 'SpecialPrice', 'PerKiloPrice',
    'Sale', 'SaleItem', 'Order',
    'Delivery', 'DeliveryItem', 'Transfer',
    'Kahon', 'KahonItem', 'Inventory', 'InventoryItem',
    'Sheet', 'Row', 'Cell',
]
