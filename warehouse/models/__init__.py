import importlib

from warehouse.models.item import Item
from warehouse.models.purchase import Purchase, PurchaseLine
from warehouse.models.sale import Sale, SaleLine
from warehouse.models.stock_balance import StockBalance
from warehouse.models.stock_movement import StockMovement
from warehouse.models.user import User


def import_all_models() -> None:
    for module_name in (
        "warehouse.models.item",
        "warehouse.models.purchase",
        "warehouse.models.sale",
        "warehouse.models.stock_balance",
        "warehouse.models.stock_movement",
        "warehouse.models.user",
    ):
        importlib.import_module(module_name)


__all__ = [
    "Item",
    "Purchase",
    "PurchaseLine",
    "Sale",
    "SaleLine",
    "StockBalance",
    "StockMovement",
    "User",
    "import_all_models",
]
