# storefront/repos/order_repo.py
from sqlalchemy import select, exists
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def list_orders(self, user_id: int | None = None) -> list[OrderModel]:
        stmt = select(OrderModel)
        if user_id is not None:
            stmt = stmt.where(OrderModel.user_id == user_id)
        stmt = stmt.order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        return list(self.db.execute(stmt).scalars().all())

    def delete_order(self, order: OrderModel):
        self.db.delete(order)
        self.db.flush()

    def has_paid_order_with_product(self, user_id: int, product_id: int) -> bool:
        stmt = select(
            exists().where(
                OrderModel.id == OrderItemModel.order_id,
                OrderModel.user_id == user_id,
                OrderModel.is_paid.is_(True),
                OrderModel.is_cancelled.is_(False),
                OrderItemModel.product_id == product_id,
            )
        )
        return bool(self.db.execute(stmt).scalar())

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
