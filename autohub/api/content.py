from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud, schemas, services
from ..auth import require_admin
from ..db import get_db
from ..errors import guarded
from ..forms import FormPayload, read_form, list_params
from ..models import Blog, Faq, HeroSlide
from ..storage import Storage, get_storage

router = APIRouter(tags=["content"])

BLOG_SORTS = {"createdAt": Blog.created_at, "updatedAt": Blog.updated_at, "title": Blog.title}
FAQ_SORTS = {"order": Faq.order, "createdAt": Faq.created_at, "updatedAt": Faq.updated_at}
HERO_SORTS = {"position": HeroSlide.position, "createdAt": HeroSlide.created_at}


# -----
# Blogs
# -----

@router.get("/api/blogs", response_model=schemas.Page[schemas.BlogOut])
@guarded("Failed to fetch blogs")
def list_blogs(params: schemas.ListParams = Depends(list_params), db: Session = Depends(get_db)):
    page = crud.paginate(db.query(Blog), params, BLOG_SORTS, "createdAt", 3, tie_break=(Blog.id.asc(),))
    return schemas.page_of(schemas.BlogOut, page)


@router.post("/api/blogs", status_code=201, response_model=schemas.Saved[schemas.BlogOut])
@guarded("Failed to create blog")
def create_blog(
    admin=Depends(require_admin),
    form: FormPayload = Depends(read_form),
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    blog = services.create_blog(db, storage, form)
    return {"success": True, "message": "Blog created successfully", "data": schemas.BlogOut.model_validate(blog)}


@router.get("/api/blogs/{blog_id}", response_model=schemas.Envelope[schemas.BlogOut])
@guarded("Failed to fetch blog")
def get_blog(blog_id: str, db: Session = Depends(get_db)):
    blog = crud.get_or_404(db, Blog, blog_id, "Blog")
    return {"success": True, "data": schemas.BlogOut.model_validate(blog)}


@router.put("/api/blogs/{blog_id}", response_model=schemas.Saved[schemas.BlogOut])
@guarded("Failed to update blog")
def update_blog(
    blog_id: str,
    admin=Depends(require_admin),
    form: FormPayload = Depends(read_form),
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    blog = services.update_blog(db, storage, blog_id, form)
    return {"success": True, "message": "Blog updated successfully", "data": schemas.BlogOut.model_validate(blog)}


@router.delete("/api/blogs/{blog_id}", response_model=schemas.Message)
@guarded("Failed to delete blog")
def delete_blog(
    blog_id: str,
    admin=Depends(require_admin),
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    services.delete_blog(db, storage, blog_id)
    return {"success": True, "message": "Blog deleted successfully"}


# ----
# FAQs
# ----

def faq_rows(db: Session):
    return [schemas.FaqOut.model_validate(f) for f in crud.faq_display_query(db).all()]


@router.get("/api/faq", response_model=schemas.Page[schemas.FaqOut])
@guarded("Failed to fetch FAQs")
def list_faqs(
    active: Optional[bool] = None,
    params: schemas.ListParams = Depends(list_params),
    db: Session = Depends(get_db),
):
    q = db.query(Faq)
    if active is not None:
        q = q.filter(Faq.is_active == active)
    page = crud.paginate(q, params, FAQ_SORTS, "order", None,
                         tie_break=(Faq.created_at.desc(), Faq.id.asc()), default_order="asc")
    return schemas.page_of(schemas.FaqOut, page)


@router.post("/api/faq", status_code=201, response_model=schemas.Saved[schemas.FaqOut])
@guarded("Failed to create FAQ")
def create_faq(payload: schemas.FaqIn, admin=Depends(require_admin), db: Session = Depends(get_db)):
    faq = services.create_faq(db, payload)
    return {"success": True, "message": "FAQ created successfully", "data": schemas.FaqOut.model_validate(faq)}


@router.put("/api/faq/reorder", response_model=schemas.Envelope[List[schemas.FaqOut]])
@guarded("Failed to reorder FAQs")
def reorder_faqs(payload: schemas.SwapIn, admin=Depends(require_admin), db: Session = Depends(get_db)):
    services.swap_rows(db, Faq, "FAQ", payload.first_id, payload.second_id, "order")
    return {"success": True, "data": faq_rows(db)}


@router.get("/api/faq/{faq_id}", response_model=schemas.Envelope[schemas.FaqOut])
@guarded("Failed to fetch FAQ")
def get_faq(faq_id: str, db: Session = Depends(get_db)):
    faq = crud.get_or_404(db, Faq, faq_id, "FAQ")
    return {"success": True, "data": schemas.FaqOut.model_validate(faq)}


@router.put("/api/faq/{faq_id}", response_model=schemas.Saved[schemas.FaqOut])
@guarded("Failed to update FAQ")
def update_faq(faq_id: str, payload: schemas.FaqUpdate, admin=Depends(require_admin), db: Session = Depends(get_db)):
    faq = services.update_faq(db, faq_id, payload)
    return {"success": True, "message": "FAQ updated successfully", "data": schemas.FaqOut.model_validate(faq)}


@router.post("/api/faq/{faq_id}/move", response_model=schemas.Envelope[List[schemas.FaqOut]])
@guarded("Failed to move FAQ")
def move_faq(faq_id: str, payload: schemas.MoveIn, admin=Depends(require_admin), db: Session = Depends(get_db)):
    rows = crud.faq_display_query(db).all()
    services.move_row(db, rows, Faq, "FAQ", faq_id, payload.direction, "order")
    return {"success": True, "data": faq_rows(db)}


@router.delete("/api/faq/{faq_id}", response_model=schemas.Message)
@guarded("Failed to delete FAQ")
def delete_faq(faq_id: str, admin=Depends(require_admin), db: Session = Depends(get_db)):
    services.delete_faq(db, faq_id)
    return {"success": True, "message": "FAQ deleted successfully"}


# -----------
# Hero slides
# -----------

def hero_rows(db: Session):
    return [schemas.HeroSlideOut.model_validate(s) for s in crud.hero_display_query(db).all()]


@router.get("/api/hero", response_model=schemas.Page[schemas.HeroSlideOut])
@guarded("Failed to fetch hero slides")
def list_hero_slides(params: schemas.ListParams = Depends(list_params), db: Session = Depends(get_db)):
    page = crud.paginate(db.query(HeroSlide), params, HERO_SORTS, "position", None,
                         tie_break=(HeroSlide.created_at.asc(), HeroSlide.id.asc()), default_order="asc")
    return schemas.page_of(schemas.HeroSlideOut, page)


@router.post("/api/hero", status_code=201, response_model=schemas.Saved[schemas.HeroSlideOut])
@guarded("Failed to create hero slide")
def create_hero_slide(
    admin=Depends(require_admin),
    form: FormPayload = Depends(read_form),
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    slide = services.create_hero_slide(db, storage, form)
    return {"success": True, "message": "Hero slide created successfully", "data": schemas.HeroSlideOut.model_validate(slide)}


@router.put("/api/hero/reorder", response_model=schemas.Envelope[List[schemas.HeroSlideOut]])
@guarded("Failed to reorder hero slides")
def reorder_hero_slides(payload: schemas.SwapIn, admin=Depends(require_admin), db: Session = Depends(get_db)):
    services.swap_rows(db, HeroSlide, "Hero slide", payload.first_id, payload.second_id, "position")
    return {"success": True, "data": hero_rows(db)}


@router.get("/api/hero/{slide_id}", response_model=schemas.Envelope[schemas.HeroSlideOut])
@guarded("Failed to fetch hero slide")
def get_hero_slide(slide_id: str, db: Session = Depends(get_db)):
    slide = crud.get_or_404(db, HeroSlide, slide_id, "Hero slide")
    return {"success": True, "data": schemas.HeroSlideOut.model_validate(slide)}


@router.put("/api/hero/{slide_id}", response_model=schemas.Saved[schemas.HeroSlideOut])
@guarded("Failed to update hero slide")
def update_hero_slide(
    slide_id: str,
    admin=Depends(require_admin),
    form: FormPayload = Depends(read_form),
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    slide = services.update_hero_slide(db, storage, slide_id, form)
    return {"success": True, "message": "Hero slide updated successfully", "data": schemas.HeroSlideOut.model_validate(slide)}


@router.post("/api/hero/{slide_id}/move", response_model=schemas.Envelope[List[schemas.HeroSlideOut]])
@guarded("Failed to move hero slide")
def move_hero_slide(slide_id: str, payload: schemas.MoveIn, admin=Depends(require_admin), db: Session = Depends(get_db)):
    rows = crud.hero_display_query(db).all()
    services.move_row(db, rows, HeroSlide, "Hero slide", slide_id, payload.direction, "position")
    return {"success": True, "data": hero_rows(db)}


@router.delete("/api/hero/{slide_id}", response_model=schemas.Message)
@guarded("Failed to delete hero slide")
def delete_hero_slide(
    slide_id: str,
    admin=Depends(require_admin),
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    services.delete_hero_slide(db, storage, slide_id)
    return {"success": True, "message": "Hero slide deleted successfully"}
