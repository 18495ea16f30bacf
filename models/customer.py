from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from database import Base

class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    customer_name = Column(String(200), nullable=False, index=True)
    company_name = Column(String(200), nullable=False, index=True)
    mobile = Column(String(20), nullable=False, index=True)
    gstin = Column(String(20), nullable=True)
    address = Column(String(500), nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    products = relationship("Product", back_populates="customer", cascade="all, delete-orphan", order_by="Product.id")

class Product(Base):
    """A product a customer ships, priced per unit of weight"""
    __tablename__ = "customer_products"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    product_name = Column(String(200), nullable=False)
    product_rate = Column(Float, nullable=False)

    customer = relationship("Customer", back_populates="products")
    categories = relationship("ProductCategory", back_populates="product", cascade="all, delete-orphan", order_by="ProductCategory.id")

class ProductCategory(Base):
    """Expense category that applies whenever the product is carried"""
    __tablename__ = "customer_product_categories"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("customer_products.id", ondelete="CASCADE"), nullable=False, index=True)
    category_name = Column(String(100), nullable=False)
    category_rate = Column(Float, nullable=False)

    product = relationship("Product", back_populates="categories")
