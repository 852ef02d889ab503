from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud, schemas, services
from ..auth import require_admin
from ..db import get_db
from ..errors import guarded
from ..forms import list_params
from ..models import ContactMessage

router = APIRouter(prefix="/api/contact", tags=["contact"])

CONTACT_SORTS = {"createdAt": ContactMessage.created_at, "status": ContactMessage.status, "name": ContactMessage.name}


@router.post("", status_code=201, response_model=schemas.Message)
@guarded("Server error")
def submit_message(payload: schemas.ContactIn, db: Session = Depends(get_db)):
    services.create_contact(db, payload)
    return {"success": True, "message": "Message saved successfully"}


@router.get("", response_model=List[schemas.ContactOut])
@guarded("Server error")
def list_messages(
    admin=Depends(require_admin),
    params: schemas.ListParams = Depends(list_params),
    db: Session = Depends(get_db),
):
    page = crud.paginate(db.query(ContactMessage), params, CONTACT_SORTS, "createdAt", None,
                         tie_break=(ContactMessage.id.asc(),))
    return [schemas.ContactOut.model_validate(m) for m in page["items"]]


@router.patch("/{message_id}", response_model=schemas.Saved[schemas.ContactOut])
@guarded("Server error")
def update_status(
    message_id: str,
    payload: schemas.ContactStatusIn,
    admin=Depends(require_admin),
    db: Session = Depends(get_db),
):
    msg = services.set_contact_status(db, message_id, payload.status)
    return {"success": True, "message": "Status updated", "data": schemas.ContactOut.model_validate(msg)}
