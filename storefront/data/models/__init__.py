#import modelu żeby SQLAlchemy zarejestrował go w base metadata

from storefront.data.models.item import ItemModel

__all__ = ["ItemModel"]
