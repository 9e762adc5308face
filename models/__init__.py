# models/__init__.py
# Import every model so Flask-Migrate / create_all() see the full schema.
from models.user import User
from models.verification_code import VerificationCode
from models.product import Product
from models.order import Order, OrderItem, OrderHistory, OrderCounter
from models.favorite_order import FavoriteOrder, FavoriteItem
from models.notification import Notification
from models.settings import PortalSettings

__all__ = [
    "User", "VerificationCode", "Product", "Order", "OrderItem", "OrderHistory",
    "OrderCounter", "FavoriteOrder", "FavoriteItem", "Notification", "PortalSettings",
]
