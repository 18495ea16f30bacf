from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime
from database import get_db
from models.customer import Customer, Product, ProductCategory
from models.trip import RouteBreakdown
from models.user import User
from utils.auth_dependency import get_current_user, get_current_admin
import re

router = APIRouter(prefix="/api/customers", tags=["Customers"])

GSTIN_PATTERN = re.compile(r'^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$')

def _clean_gstin(v: Optional[str]) -> Optional[str]:
    if v is None or not v.strip():
        return None
    v = v.strip().upper()
    if not GSTIN_PATTERN.match(v):
        raise ValueError('Invalid GSTIN format')
    return v

class CategoryCreate(BaseModel):
    category_name: str = Field(..., min_length=1, max_length=100)
    category_rate: float = Field(..., ge=0)

class CategoryResponse(BaseModel):
    id: int
    category_name: str
    category_rate: float

    class Config:
        from_attributes = True

class ProductCreate(BaseModel):
    product_name: str = Field(..., min_length=1, max_length=200)
    product_rate: float = Field(..., ge=0)
    categories: List[CategoryCreate] = []

class ProductResponse(BaseModel):
    id: int
    customer_id: int
    product_name: str
    product_rate: float
    categories: List[CategoryResponse] = []

    class Config:
        from_attributes = True

class CustomerCreate(BaseModel):
    customer_name: str = Field(..., min_length=2, max_length=200)
    company_name: str = Field(..., min_length=2, max_length=200)
    mobile: str = Field(..., min_length=10, max_length=15)
    gstin: Optional[str] = None
    address: Optional[str] = Field(None, max_length=500)
    products: List[ProductCreate] = []

    @validator('gstin')
    def validate_gstin(cls, v):
        return _clean_gstin(v)

class CustomerUpdate(BaseModel):
    customer_name: Optional[str] = Field(None, min_length=2, max_length=200)
    company_name: Optional[str] = Field(None, min_length=2, max_length=200)
    mobile: Optional[str] = Field(None, min_length=10, max_length=15)
    gstin: Optional[str] = None
    address: Optional[str] = Field(None, max_length=500)

    @validator('gstin')
    def validate_gstin(cls, v):
        return _clean_gstin(v)

class CustomerResponse(BaseModel):
    id: int
    customer_name: str
    company_name: str
    mobile: str
    gstin: Optional[str] = None
    address: Optional[str] = None
    products: List[ProductResponse] = []
    created_at: datetime

    class Config:
        from_attributes = True

def _get_or_404(db: Session, customer_id: int) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer

def _build_product(request: ProductCreate) -> Product:
    return Product(
        product_name=request.product_name,
        product_rate=request.product_rate,
        categories=[
            ProductCategory(category_name=c.category_name, category_rate=c.category_rate)
            for c in request.categories
        ]
    )

@router.get("/", response_model=List[CustomerResponse])
def get_customers(
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    query = db.query(Customer)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            (Customer.customer_name.ilike(pattern)) | (Customer.company_name.ilike(pattern))
        )
    return query.order_by(Customer.customer_name).all()

@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(customer_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_or_404(db, customer_id)

@router.post("/", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def create_customer(request: CustomerCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    customer = Customer(
        customer_name=request.customer_name,
        company_name=request.company_name,
        mobile=request.mobile,
        gstin=request.gstin,
        address=request.address,
        products=[_build_product(p) for p in request.products]
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer

@router.put("/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    request: CustomerUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    customer = _get_or_404(db, customer_id)
    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(customer, field, value)
    db.commit()
    db.refresh(customer)
    return customer

@router.delete("/{customer_id}")
def delete_customer(customer_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_admin)):
    customer = _get_or_404(db, customer_id)
    if db.query(RouteBreakdown.id).filter(RouteBreakdown.customer_id == customer_id).first():
        raise HTTPException(status_code=400, detail="Customer has trips and cannot be deleted")
    db.delete(customer)
    db.commit()
    return {"message": "Customer deleted successfully"}

@router.get("/{customer_id}/products", response_model=List[ProductResponse])
def get_customer_products(customer_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_or_404(db, customer_id).products

@router.post("/{customer_id}/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def add_customer_product(
    customer_id: int,
    request: ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    customer = _get_or_404(db, customer_id)
    if any(p.product_name.lower() == request.product_name.lower() for p in customer.products):
        raise HTTPException(status_code=400, detail="Product already exists for this customer")

    product = _build_product(request)
    customer.products.append(product)
    db.commit()
    db.refresh(product)
    return product

@router.post(
    "/{customer_id}/products/{product_id}/categories",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED
)
def add_product_category(
    customer_id: int,
    product_id: int,
    request: CategoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    product = db.query(Product).filter(Product.id == product_id, Product.customer_id == customer_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    if any(c.category_name.lower() == request.category_name.lower() for c in product.categories):
        raise HTTPException(status_code=400, detail="Category already exists for this product")

    product.categories.append(ProductCategory(category_name=request.category_name, category_rate=request.category_rate))
    db.commit()
    db.refresh(product)
    return product
