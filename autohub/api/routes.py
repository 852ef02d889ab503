from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import auth, config, schemas
from ..auth import require_admin
from ..db import get_db
from ..errors import guarded
from ..migrate import migrate_product_images
from ..storage import LocalStorage, Storage, get_storage

router = APIRouter()


@router.get("/api/health")
def health():
    return {"status": "ok"}


@router.post("/api/auth", response_model=schemas.TokenOut)
@guarded("Authentication failed")
def login(payload: schemas.LoginIn, db: Session = Depends(get_db)):
    user = auth.authenticate(db, payload.username, payload.password)
    return {"success": True, "message": "Authentication successful", "token": auth.issue_token(user)}


@router.post("/api/auth/users", status_code=201, response_model=schemas.Message)
@guarded("Failed to create user")
def create_user(payload: schemas.AdminUserIn, admin=Depends(require_admin), db: Session = Depends(get_db)):
    auth.create_admin(db, payload.username, payload.password, payload.role)
    return {"success": True, "message": f"User {payload.username} created"}


@router.put("/api/auth/password", response_model=schemas.Message)
@guarded("Failed to change password")
def change_password(payload: schemas.PasswordChangeIn, admin=Depends(require_admin), db: Session = Depends(get_db)):
    auth.change_password(db, admin, payload.current_password, payload.new_password)
    return {"success": True, "message": "Password updated"}


def legacy_storage() -> LocalStorage:
    return LocalStorage(config.MEDIA_ROOT, config.MEDIA_BASE_URL)


@router.post("/api/migrate-images")
@guarded("Failed to migrate images")
def migrate_images(
    payload: schemas.MigrateIn,
    admin=Depends(require_admin),
    db: Session = Depends(get_db),
    source: LocalStorage = Depends(legacy_storage),
    target: Storage = Depends(get_storage),
):
    return migrate_product_images(db, source, target, payload.limit)
