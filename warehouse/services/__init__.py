from warehouse.services.posting_service import post_purchase, post_sale
from warehouse.services.stock_ledger import adjust_balance, get_or_create_balance
from warehouse.services.transaction_reader import get_purchase, get_sale, list_purchases, list_sales

__all__ = [
    "adjust_balance",
    "get_or_create_balance",
    "get_purchase",
    "get_sale",
    "list_purchases",
    "list_sales",
    "post_purchase",
    "post_sale",
]
