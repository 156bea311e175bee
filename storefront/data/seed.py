# storefront/data/seed.py
from decimal import Decimal

from storefront.data.database import Base, SessionLocal, engine
from storefront.data.models import UserModel, ProductModel
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS = [
    {"name": "Keyboard", "image": "/images/keyboard.jpg", "price": Decimal("199.99"), "count_in_stock": 10},
    {"name": "Mouse", "image": "/images/mouse.jpg", "price": Decimal("49.50"), "count_in_stock": 25},
    {"name": "Monitor", "image": "/images/monitor.jpg", "price": Decimal("899.00"), "count_in_stock": 5},
]


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(ProductModel).first():
            return
        db.add(UserModel(id=1, name="Admin", email="admin@example.com", is_admin=True))
        db.add(UserModel(id=2, name="Customer", email="customer@example.com", is_admin=False))
        db.add_all(ProductModel(**p) for p in PRODUCTS)
        db.commit()
        logger.info(f"Seeded {len(PRODUCTS)} products and 2 users")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
