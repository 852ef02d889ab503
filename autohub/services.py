"""Write paths of the catalog: validation, uploads and stored-file cleanup.

Every create/update follows the same order: validate the submitted form,
upload new files, write the row, then remove files the row no longer
references. Files uploaded by a request whose database write fails are
removed again before the error propagates.
"""
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy.orm import Session

from . import crud, errors
from .forms import FormPayload
from .models import Product, Brand, Category, Blog, Faq, HeroSlide, ContactMessage, CATEGORY_PLACEHOLDER
from .schemas import (
    drop_blank, ProductCreate, ProductUpdate, BrandIn, CategoryIn, CategoryUpdate,
    BlogIn, FaqIn, FaqUpdate, HeroIn, HeroUpdate, ContactIn,
)
from .storage import Storage, discard
from .utils import get_logger

logger = get_logger("autohub.services")

PRODUCT_FIELDS = (
    "title", "model", "year", "unitPrice", "discountPercentage", "quantity", "weight",
    "description", "fuelType", "mileage", "mileageUnit", "chassis", "color",
    "axleConfiguration", "vehicleGrade", "tag", "features", "category", "make",
)
# free-text fields an update may clear by sending an empty value
CLEARABLE_TEXT = ("description", "chassis", "color", "axleConfiguration", "vehicleGrade")


class UploadBatch:
    def __init__(self, storage: Storage):
        self.storage = storage
        self.urls: List[str] = []

    def save(self, upload, folder):
        url = self.storage.save(upload, folder)
        self.urls.append(url)
        return url


@contextmanager
def committing(db: Session, storage: Storage):
    """Commit on success; on failure roll back and remove this request's uploads."""
    batch = UploadBatch(storage)
    try:
        yield batch
        db.commit()
    except Exception:
        db.rollback()
        if batch.urls:
            logger.warning("Write failed, removing %d freshly uploaded file(s)", len(batch.urls))
            discard(storage, batch.urls)
        raise


def resolve_thumbnail(new_thumbnail: Optional[str], current: Optional[str], images: List[str]) -> str:
    """Thumbnail a product ends up with after an update.

    A new upload wins, then the stored thumbnail; a product without either
    falls back to its first image.
    """
    if new_thumbnail:
        return new_thumbnail
    if current:
        return current
    if images:
        return images[0]
    raise errors.ValidationError("A thumbnail image is required.")


def reconcile_images(current: List[str], keep: List[str]) -> List[str]:
    """URLs from `keep` that belong to the product, in the caller's order, without duplicates."""
    kept = []
    for url in keep:
        if url in current and url not in kept:
            kept.append(url)
    return kept


# --------
# Products
# --------

def _product_columns(data: dict) -> dict:
    data = dict(data)
    if "category" in data:
        data["category_id"] = data.pop("category")
    if "make" in data:
        data["make_id"] = data.pop("make")
    return data


def create_product(db: Session, storage: Storage, form: FormPayload) -> Product:
    payload = ProductCreate.model_validate(drop_blank(form.pick(PRODUCT_FIELDS)))
    crud.references_exist(db, payload.category, payload.make)

    thumbnail = form.upload("thumbnail")
    if thumbnail is None:
        raise errors.ValidationError("Thumbnail image is required")
    if not form.files.get("images"):
        raise errors.ValidationError("At least one product image is required")
    images = form.uploads("images")
    if not images:
        raise errors.ValidationError("At least one valid product image is required")

    with committing(db, storage) as batch:
        product = Product(**_product_columns(payload.model_dump()))
        product.thumbnail = batch.save(thumbnail, "products")
        product.images = [batch.save(f, "products") for f in images]
        db.add(product)
    db.refresh(product)
    logger.info("Created product %s (%s) with %d image(s)", product.id, product.title, len(product.images))
    return product


def _product_update_data(form: FormPayload) -> dict:
    data = {}
    for key in PRODUCT_FIELDS:
        if not form.has(key):
            continue
        value = form.get(key)
        if key in CLEARABLE_TEXT:
            data[key] = value or ""
        elif key == "tag":
            data[key] = value or None
        elif value is not None and value.strip() != "":
            data[key] = value
    return data


def update_product(db: Session, storage: Storage, product_id: str, form: FormPayload) -> Product:
    product = crud.get_or_404(db, Product, product_id, "Product")
    changes = ProductUpdate.model_validate(_product_update_data(form)).model_dump(exclude_unset=True)
    crud.references_exist(db, changes.get("category"), changes.get("make"))

    new_thumbnail = form.upload("thumbnail")
    kept = reconcile_images(product.images or [], form.getlist("existingImages"))
    new_images = form.uploads("images")
    if not kept and not new_images:
        raise errors.ValidationError("At least one product image is required.")
    removed = [url for url in (product.images or []) if url not in kept]
    old_thumbnail = product.thumbnail

    with committing(db, storage) as batch:
        for key, value in _product_columns(changes).items():
            setattr(product, key, value)
        thumbnail_url = batch.save(new_thumbnail, "products") if new_thumbnail else None
        product.images = kept + [batch.save(f, "products") for f in new_images]
        product.thumbnail = resolve_thumbnail(thumbnail_url, old_thumbnail, product.images)

    stale = list(removed)
    if thumbnail_url:
        stale.append(old_thumbnail)
    discard(storage, stale, keep=set(product.images) | {product.thumbnail})
    db.refresh(product)
    logger.info("Updated product %s: %d image(s) kept, %d added, %d removed",
                product.id, len(kept), len(new_images), len(removed))
    return product


def delete_product(db: Session, storage: Storage, product_id: str):
    product = crud.get_or_404(db, Product, product_id, "Product")
    files = [product.thumbnail] + list(product.images or [])
    db.delete(product)
    db.commit()
    discard(storage, files)
    logger.info("Deleted product %s", product_id)


# ------------------
# Brands, categories
# ------------------

def create_brand(db: Session, storage: Storage, form: FormPayload) -> Brand:
    payload = BrandIn.model_validate(drop_blank(form.pick(("name",))))
    logo = form.upload("thumbnail")
    if logo is None:
        raise errors.ValidationError("Brand logo is required")
    with committing(db, storage) as batch:
        brand = Brand(name=payload.name, thumbnail=batch.save(logo, "brands"))
        db.add(brand)
    db.refresh(brand)
    logger.info("Created brand %s (%s)", brand.id, brand.name)
    return brand


def update_brand(db: Session, storage: Storage, brand_id: str, form: FormPayload) -> Brand:
    brand = crud.get_or_404(db, Brand, brand_id, "Brand")
    payload = BrandIn.model_validate(drop_blank(form.pick(("name",))))
    logo = form.upload("thumbnail")
    old = brand.thumbnail
    with committing(db, storage) as batch:
        brand.name = payload.name
        if logo is not None:
            brand.thumbnail = batch.save(logo, "brands")
    if logo is not None:
        discard(storage, [old])
    db.refresh(brand)
    return brand


def delete_brand(db: Session, storage: Storage, brand_id: str):
    brand = crud.get_or_404(db, Brand, brand_id, "Brand")
    in_use = crud.count_products_using(db, Product.make_id, brand_id)
    if in_use:
        raise errors.ValidationError(f"Brand is used by {in_use} product(s)")
    thumbnail = brand.thumbnail
    db.delete(brand)
    db.commit()
    discard(storage, [thumbnail])
    logger.info("Deleted brand %s", brand_id)


def create_category(db: Session, storage: Storage, form: FormPayload) -> Category:
    payload = CategoryIn.model_validate(drop_blank(form.pick(("name", "type"))))
    image = form.upload("thumbnail")
    with committing(db, storage) as batch:
        category = Category(
            name=payload.name,
            type=payload.type,
            thumbnail=batch.save(image, "categories") if image else CATEGORY_PLACEHOLDER,
        )
        db.add(category)
    db.refresh(category)
    logger.info("Created %s category %s (%s)", category.type, category.id, category.name)
    return category


def update_category(db: Session, storage: Storage, category_id: str, form: FormPayload) -> Category:
    category = crud.get_or_404(db, Category, category_id, "Category")
    changes = CategoryUpdate.model_validate(drop_blank(form.pick(("name", "type")))).model_dump(exclude_unset=True)
    image = form.upload("thumbnail")
    old = category.thumbnail
    with committing(db, storage) as batch:
        for key, value in changes.items():
            setattr(category, key, value)
        if image is not None:
            category.thumbnail = batch.save(image, "categories")
    if image is not None:
        discard(storage, [old])
    db.refresh(category)
    return category


def delete_category(db: Session, storage: Storage, category_id: str):
    category = crud.get_or_404(db, Category, category_id, "Category")
    in_use = crud.count_products_using(db, Product.category_id, category_id)
    if in_use:
        raise errors.ValidationError(f"Category is used by {in_use} product(s)")
    thumbnail = category.thumbnail
    db.delete(category)
    db.commit()
    discard(storage, [thumbnail])
    logger.info("Deleted category %s", category_id)


# -----
# Blogs
# -----

BLOG_FIELDS = ("title", "description", "content")


def create_blog(db: Session, storage: Storage, form: FormPayload) -> Blog:
    payload = BlogIn.model_validate(drop_blank(form.pick(BLOG_FIELDS)))
    image = form.upload("thumbnail")
    if image is None:
        raise errors.ValidationError("Thumbnail image is required")
    with committing(db, storage) as batch:
        blog = Blog(**payload.model_dump(), thumbnail=batch.save(image, "blogs"))
        db.add(blog)
    db.refresh(blog)
    logger.info("Created blog %s (%s)", blog.id, blog.title)
    return blog


def update_blog(db: Session, storage: Storage, blog_id: str, form: FormPayload) -> Blog:
    blog = crud.get_or_404(db, Blog, blog_id, "Blog")
    payload = BlogIn.model_validate(drop_blank(form.pick(BLOG_FIELDS)))
    image = form.upload("thumbnail")
    old = blog.thumbnail
    with committing(db, storage) as batch:
        for key, value in payload.model_dump().items():
            setattr(blog, key, value)
        if image is not None:
            blog.thumbnail = batch.save(image, "blogs")
    if image is not None:
        discard(storage, [old])
    db.refresh(blog)
    return blog


def delete_blog(db: Session, storage: Storage, blog_id: str):
    blog = crud.get_or_404(db, Blog, blog_id, "Blog")
    thumbnail = blog.thumbnail
    db.delete(blog)
    db.commit()
    discard(storage, [thumbnail])
    logger.info("Deleted blog %s", blog_id)


# -----------
# Hero slides
# -----------

def _image_only(upload):
    if not upload.is_image:
        raise errors.ValidationError("Only images are allowed")


def create_hero_slide(db: Session, storage: Storage, form: FormPayload) -> HeroSlide:
    payload = HeroIn.model_validate(drop_blank(form.pick(("position", "isActive"))))
    media = form.upload("media")
    if media is None:
        raise errors.ValidationError("No file uploaded")
    _image_only(media)
    with committing(db, storage) as batch:
        slide = HeroSlide(
            media_url=batch.save(media, "hero"),
            media_type="image",
            position=payload.position,
            is_active=payload.is_active,
        )
        db.add(slide)
    db.refresh(slide)
    logger.info("Created hero slide %s at position %d", slide.id, slide.position)
    return slide


def update_hero_slide(db: Session, storage: Storage, slide_id: str, form: FormPayload) -> HeroSlide:
    slide = crud.get_or_404(db, HeroSlide, slide_id, "Hero slide")
    changes = HeroUpdate.model_validate(drop_blank(form.pick(("position", "isActive")))).model_dump(exclude_unset=True)
    media = form.upload("media")
    if media is not None:
        _image_only(media)
    old = slide.media_url
    with committing(db, storage) as batch:
        for key, value in changes.items():
            setattr(slide, key, value)
        if media is not None:
            slide.media_url = batch.save(media, "hero")
    if media is not None:
        discard(storage, [old])
    db.refresh(slide)
    return slide


def delete_hero_slide(db: Session, storage: Storage, slide_id: str):
    slide = crud.get_or_404(db, HeroSlide, slide_id, "Hero slide")
    media_url = slide.media_url
    db.delete(slide)
    db.commit()
    discard(storage, [media_url])
    logger.info("Deleted hero slide %s", slide_id)


# ----
# FAQs
# ----

def create_faq(db: Session, payload: FaqIn) -> Faq:
    faq = Faq(**payload.model_dump())
    db.add(faq)
    db.commit()
    db.refresh(faq)
    return faq


def update_faq(db: Session, faq_id: str, payload: FaqUpdate) -> Faq:
    faq = crud.get_or_404(db, Faq, faq_id, "FAQ")
    for key, value in payload.model_dump(exclude_none=True).items():
        setattr(faq, key, value)
    db.commit()
    db.refresh(faq)
    return faq


def delete_faq(db: Session, faq_id: str):
    faq = crud.get_or_404(db, Faq, faq_id, "FAQ")
    db.delete(faq)
    db.commit()


# --------
# Ordering
# --------

def swap_rows(db: Session, model, label: str, first_id: str, second_id: str, attr: str):
    if first_id == second_id:
        raise errors.ValidationError("Cannot swap an item with itself")
    first = crud.get_or_404(db, model, first_id, label)
    second = crud.get_or_404(db, model, second_id, label)
    crud.swap(db, first, second, attr)
    logger.info("Swapped %s of %s %s and %s", attr, label, first_id, second_id)
    return first, second


def move_row(db: Session, rows, model, label: str, obj_id: str, direction: str, attr: str):
    crud.get_or_404(db, model, obj_id, label)
    moved = crud.move(db, rows, obj_id, direction, attr)
    if moved:
        logger.info("Moved %s %s %s", label, obj_id, direction)
    return moved


# ----------------
# Contact messages
# ----------------

def create_contact(db: Session, payload: ContactIn) -> ContactMessage:
    msg = ContactMessage(**payload.model_dump())
    db.add(msg)
    db.commit()
    db.refresh(msg)
    logger.info("Saved contact message %s from %s", msg.id, msg.email)
    return msg


def set_contact_status(db: Session, message_id: str, status: str) -> ContactMessage:
    msg = crud.get_or_404(db, ContactMessage, message_id, "Message")
    msg.status = status
    db.commit()
    db.refresh(msg)
    return msg
