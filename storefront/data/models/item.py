from sqlalchemy import Column, Integer, String, JSON

from storefront.data.database import Base


class ItemModel(Base):
    """Jeden wiersz = jeden element tabeli klucz-wartość."""

    __tablename__ = "kv_items"

    table_name = Column(String(64), primary_key=True)
    partition_key = Column(String(255), primary_key=True)
    sort_key = Column(String(255), primary_key=True, default="")

    data = Column(JSON, nullable=False)
    # optimistic locking, każdy zapis podbija wersję
    version = Column(Integer, nullable=False, default=1)
