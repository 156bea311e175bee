from sqlalchemy import Boolean, Column, Integer, String
from storefront.data.database import Base

class UserModel(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, default="")
    is_admin = Column(Boolean, nullable=False, default=False)
