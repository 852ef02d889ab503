from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud, schemas, services
from ..auth import require_admin
from ..db import get_db
from ..errors import guarded
from ..forms import FormPayload, read_form, product_filters
from ..models import Product
from ..storage import Storage, get_storage

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("", response_model=schemas.Page[schemas.ProductOut])
@guarded("Failed to fetch products")
def list_products(filters: schemas.ProductFilters = Depends(product_filters), db: Session = Depends(get_db)):
    return schemas.page_of(schemas.ProductOut, crud.list_products(db, filters))


@router.post("", status_code=201, response_model=schemas.Saved[schemas.ProductOut])
@guarded("Failed to create product")
def create_product(
    admin=Depends(require_admin),
    form: FormPayload = Depends(read_form),
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    product = services.create_product(db, storage, form)
    return {"success": True, "message": "Product created successfully", "data": schemas.ProductOut.model_validate(product)}


@router.get("/{product_id}", response_model=schemas.Envelope[schemas.ProductOut])
@guarded("Failed to fetch product")
def get_product(product_id: str, db: Session = Depends(get_db)):
    product = crud.get_or_404(db, Product, product_id, "Product")
    return {"success": True, "data": schemas.ProductOut.model_validate(product)}


@router.put("/{product_id}", response_model=schemas.Saved[schemas.ProductOut])
@guarded("Failed to update product")
def update_product(
    product_id: str,
    admin=Depends(require_admin),
    form: FormPayload = Depends(read_form),
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    product = services.update_product(db, storage, product_id, form)
    return {"success": True, "message": "Product updated successfully", "data": schemas.ProductOut.model_validate(product)}


@router.delete("/{product_id}", response_model=schemas.Message)
@guarded("Failed to delete product")
def delete_product(
    product_id: str,
    admin=Depends(require_admin),
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    services.delete_product(db, storage, product_id)
    return {"success": True, "message": "Product deleted successfully"}
