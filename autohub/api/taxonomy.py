from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud, schemas, services
from ..auth import require_admin
from ..db import get_db
from ..errors import guarded
from ..forms import FormPayload, read_form, list_params
from ..models import Brand, Category
from ..storage import Storage, get_storage

router = APIRouter(tags=["taxonomy"])

BRAND_SORTS = {"createdAt": Brand.created_at, "updatedAt": Brand.updated_at, "name": Brand.name}
CATEGORY_SORTS = {"createdAt": Category.created_at, "updatedAt": Category.updated_at, "name": Category.name}


# ------
# Brands
# ------

@router.get("/api/brands", response_model=schemas.Page[schemas.BrandOut])
@guarded("Failed to fetch brands")
def list_brands(params: schemas.ListParams = Depends(list_params), db: Session = Depends(get_db)):
    page = crud.paginate(db.query(Brand), params, BRAND_SORTS, "createdAt", None, tie_break=(Brand.id.asc(),))
    return schemas.page_of(schemas.BrandOut, page)


@router.post("/api/brands", status_code=201, response_model=schemas.Saved[schemas.BrandOut])
@guarded("Failed to create brand")
def create_brand(
    admin=Depends(require_admin),
    form: FormPayload = Depends(read_form),
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    brand = services.create_brand(db, storage, form)
    return {"success": True, "message": "Brand created successfully", "data": schemas.BrandOut.model_validate(brand)}


@router.get("/api/brands/{brand_id}", response_model=schemas.Envelope[schemas.BrandOut])
@guarded("Failed to fetch brand")
def get_brand(brand_id: str, db: Session = Depends(get_db)):
    brand = crud.get_or_404(db, Brand, brand_id, "Brand")
    return {"success": True, "data": schemas.BrandOut.model_validate(brand)}


@router.put("/api/brands/{brand_id}", response_model=schemas.Saved[schemas.BrandOut])
@guarded("Failed to update brand")
def update_brand(
    brand_id: str,
    admin=Depends(require_admin),
    form: FormPayload = Depends(read_form),
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    brand = services.update_brand(db, storage, brand_id, form)
    return {"success": True, "message": "Brand updated successfully", "data": schemas.BrandOut.model_validate(brand)}


@router.delete("/api/brands/{brand_id}", response_model=schemas.Message)
@guarded("Failed to delete brand")
def delete_brand(
    brand_id: str,
    admin=Depends(require_admin),
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    services.delete_brand(db, storage, brand_id)
    return {"success": True, "message": "Brand deleted successfully"}


# ----------
# Categories
# ----------

@router.get("/api/categories", response_model=schemas.Page[schemas.CategoryOut])
@guarded("Failed to fetch categories")
def list_categories(
    type: Optional[schemas.CategoryType] = None,
    params: schemas.ListParams = Depends(list_params),
    db: Session = Depends(get_db),
):
    q = db.query(Category)
    if type:
        q = q.filter(Category.type == type)
    page = crud.paginate(q, params, CATEGORY_SORTS, "createdAt", None, tie_break=(Category.id.asc(),))
    return schemas.page_of(schemas.CategoryOut, page)


@router.post("/api/categories", status_code=201, response_model=schemas.Saved[schemas.CategoryOut])
@guarded("Failed to create category")
def create_category(
    admin=Depends(require_admin),
    form: FormPayload = Depends(read_form),
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    category = services.create_category(db, storage, form)
    return {"success": True, "message": "Category created successfully", "data": schemas.CategoryOut.model_validate(category)}


@router.get("/api/categories/{category_id}", response_model=schemas.Envelope[schemas.CategoryOut])
@guarded("Failed to fetch category")
def get_category(category_id: str, db: Session = Depends(get_db)):
    category = crud.get_or_404(db, Category, category_id, "Category")
    return {"success": True, "data": schemas.CategoryOut.model_validate(category)}


@router.put("/api/categories/{category_id}", response_model=schemas.Saved[schemas.CategoryOut])
@guarded("Failed to update category")
def update_category(
    category_id: str,
    admin=Depends(require_admin),
    form: FormPayload = Depends(read_form),
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    category = services.update_category(db, storage, category_id, form)
    return {"success": True, "message": "Category updated successfully", "data": schemas.CategoryOut.model_validate(category)}


@router.delete("/api/categories/{category_id}", response_model=schemas.Message)
@guarded("Failed to delete category")
def delete_category(
    category_id: str,
    admin=Depends(require_admin),
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    services.delete_category(db, storage, category_id)
    return {"success": True, "message": "Category deleted successfully"}
