"""Request parsing shared by the routers: multipart forms and list query strings."""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from fastapi import Request
from starlette.datastructures import UploadFile

from .schemas import ListParams, ProductFilters
from .storage import IncomingFile


@dataclass
class FormPayload:
    fields: Dict[str, List[str]] = field(default_factory=dict)
    files: Dict[str, List[IncomingFile]] = field(default_factory=dict)

    def has(self, key):
        return key in self.fields

    def get(self, key, default=None):
        values = self.fields.get(key)
        return values[0] if values else default

    def getlist(self, key):
        return list(self.fields.get(key, []))

    def pick(self, keys):
        return {k: self.get(k) for k in keys if self.has(k)}

    def uploads(self, key) -> List[IncomingFile]:
        """Non-empty files sent under `key`."""
        return [f for f in self.files.get(key, []) if f.size > 0]

    def upload(self, key) -> Optional[IncomingFile]:
        found = self.uploads(key)
        return found[0] if found else None


async def read_form(request: Request) -> FormPayload:
    payload = FormPayload()
    form = await request.form()
    try:
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                data = await value.read()
                payload.files.setdefault(key, []).append(
                    IncomingFile(filename=value.filename or "", content_type=value.content_type, data=data)
                )
            else:
                payload.fields.setdefault(key, []).append(value)
    finally:
        await form.close()
    return payload


def list_params(request: Request) -> ListParams:
    return ListParams.model_validate(dict(request.query_params))


def product_filters(request: Request) -> ProductFilters:
    return ProductFilters.model_validate(dict(request.query_params))
