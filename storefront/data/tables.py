# storefront/data/tables.py
from storefront.data.store import TableSchema
from storefront.utils.settings import CART_TABLE, ORDER_TABLE, PRODUCTS_TABLE, USERS_TABLE

CART = TableSchema(CART_TABLE, partition_key="userId", sort_key="productId")
PRODUCTS = TableSchema(PRODUCTS_TABLE, partition_key="productId")
ORDERS = TableSchema(ORDER_TABLE, partition_key="orderId")
USERS = TableSchema(USERS_TABLE, partition_key="userId", sort_key="role")

ALL_TABLES = (CART, PRODUCTS, ORDERS, USERS)
