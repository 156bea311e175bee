# storefront/repos/product_repo.py
from typing import Iterable
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def find_many(self, product_ids: Iterable[int]) -> dict[int, ProductModel]:
        ids = set(product_ids)
        if not ids:
            return {}
        rows = self.db.execute(
            select(ProductModel).where(ProductModel.id.in_(ids))
        ).scalars().all()
        return {p.id: p for p in rows}

    def decrement_stock(self, product_id: int, quantity: int) -> bool:
        """
        Conditional decrement: only applies when the row still has enough stock.
        Check and write happen in a single statement, so two concurrent orders
        cannot both take the last units.
        """
        result = self.db.execute(
            update(ProductModel)
            .where(
                ProductModel.id == product_id,
                ProductModel.count_in_stock >= quantity,
            )
            .values(count_in_stock=ProductModel.count_in_stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def increment_stock(self, product_id: int, quantity: int) -> bool:
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(count_in_stock=ProductModel.count_in_stock + quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
