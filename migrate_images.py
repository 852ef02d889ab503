import argparse
import json

from autohub import config
from autohub.errors import CatalogError
from autohub.db import SessionLocal
from autohub.migrate import migrate_product_images
from autohub.storage import LocalStorage, get_storage
from autohub.utils import logger


def main(argv=None):
    parser = argparse.ArgumentParser(description="Copy legacy on-disk product images into the object store.")
    parser.add_argument("--limit", type=int, default=10, help="maximum number of products to process")
    parser.add_argument("--media-root", default=config.MEDIA_ROOT, help="directory holding the legacy files")
    args = parser.parse_args(argv)

    source = LocalStorage(args.media_root, config.MEDIA_BASE_URL)
    target = get_storage()
    db = SessionLocal()
    try:
        report = migrate_product_images(db, source, target, args.limit)
    except CatalogError as e:
        logger.error("Migration not started: %s", e.message)
        return 2
    finally:
        db.close()

    logger.info("%s: %d processed, %d successful, %d failed",
                report["message"], report["processed"], report["successful"], report["failed"])
    print(json.dumps(report["details"], indent=2, default=str))
    return 1 if report["failed"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
