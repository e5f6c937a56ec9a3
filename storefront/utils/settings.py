# storefront/utils/settings.py
import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# memory | sql | dynamodb
STORE_BACKEND = os.getenv("STORE_BACKEND", "sql")
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./storefront.db")

AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
CART_TABLE = os.getenv("CART_TABLE", "Cart")
PRODUCTS_TABLE = os.getenv("PRODUCTS_TABLE", "Products")
ORDER_TABLE = os.getenv("ORDER_TABLE", "Orders")
USERS_TABLE = os.getenv("USERS_TABLE", "Users")
SNS_TOPIC_ARN = os.getenv("SNS_TOPIC_ARN", "")

REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", REDIS_URL)
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://redis:6379/2")

# zwrot rezerwacji przy porażce kolejnej linii zamówienia
ORDER_COMPENSATE_RESERVATIONS = _flag("ORDER_COMPENSATE_RESERVATIONS")
PRODUCT_PAGE_LIMIT = int(os.getenv("PRODUCT_PAGE_LIMIT", 50))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
