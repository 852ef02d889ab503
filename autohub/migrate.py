"""Move legacy on-disk product images into the object store.

Products created before the object store existed reference files such as
`/products/<name>.jpg` served from the local media root. Each such file is
uploaded under the same key (skipped when the key already exists) and the
product's URLs are rewritten.
"""
from sqlalchemy.orm import Session

from . import errors
from .models import Product
from .storage import LocalStorage, Storage, guess_content_type
from .utils import get_logger

logger = get_logger("autohub.migrate")


def is_legacy(source: LocalStorage, url, folder="products"):
    key = source.key_for(url)
    return key is not None and key.startswith(folder + "/")


def migrate_file(source: LocalStorage, target: Storage, url):
    key = source.key_for(url)
    if target.exists(key):
        return target.url_for(key)
    return target.put(key, source.read(key), guess_content_type(key))


def pending_products(db: Session, source: LocalStorage, limit: int):
    """Products that still reference at least one legacy file, oldest first."""
    found = []
    for product in db.query(Product).order_by(Product.created_at.asc(), Product.id.asc()).all():
        if is_legacy(source, product.thumbnail) or any(is_legacy(source, u) for u in product.images or []):
            found.append(product)
            if len(found) >= limit:
                break
    return found


def migrate_product_images(db: Session, source: LocalStorage, target: Storage, limit: int = 10):
    if target.base_url == source.base_url:
        raise errors.ValidationError("Object storage target must differ from the legacy media location")

    products = pending_products(db, source, limit)
    if not products:
        return {
            "success": True,
            "message": "No products found that need image migration",
            "processed": 0, "successful": 0, "failed": 0,
            "details": {"successful": [], "failed": []},
        }

    results = {"successful": [], "failed": []}
    for product in products:
        report = {"productId": product.id, "title": product.title, "migratedImages": []}
        try:
            if is_legacy(source, product.thumbnail):
                old = product.thumbnail
                try:
                    product.thumbnail = migrate_file(source, target, old)
                    report["migratedImages"].append({"type": "thumbnail", "oldPath": old, "newPath": product.thumbnail})
                except Exception as e:
                    logger.warning("Could not migrate %s of product %s: %s", old, product.id, e)
                    report["migratedImages"].append({"type": "thumbnail", "oldPath": old, "error": str(e)})

            images = list(product.images or [])
            for i, old in enumerate(images):
                if not is_legacy(source, old):
                    continue
                try:
                    images[i] = migrate_file(source, target, old)
                    report["migratedImages"].append({"type": "image", "index": i, "oldPath": old, "newPath": images[i]})
                except Exception as e:
                    logger.warning("Could not migrate %s of product %s: %s", old, product.id, e)
                    report["migratedImages"].append({"type": "image", "index": i, "oldPath": old, "error": str(e)})
            product.images = images
            db.commit()
            results["successful"].append(report)
            logger.info("Migrated %d file(s) of product %s", len(report["migratedImages"]), product.id)
        except Exception as e:
            db.rollback()
            logger.exception("Migration of product %s failed", report["productId"])
            results["failed"].append({"productId": report["productId"], "title": report["title"], "error": str(e)})

    return {
        "success": True,
        "message": "Image migration completed",
        "processed": len(products),
        "successful": len(results["successful"]),
        "failed": len(results["failed"]),
        "details": results,
    }
