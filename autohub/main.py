from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config, errors
from .api import content, contact, products, routes, taxonomy
from .auth import ensure_bootstrap_admin
from .db import Base, engine, SessionLocal
from . import models  # noqa: F401 ensure models are imported so tables are known
from .utils import logger

app = FastAPI(title="AutoHub Catalog API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

errors.install(app)

app.include_router(routes.router)
app.include_router(products.router)
app.include_router(taxonomy.router)
app.include_router(content.router)
app.include_router(contact.router)


@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        ensure_bootstrap_admin(db)
    finally:
        db.close()
    logger.info("AutoHub API ready (storage backend: %s)", config.STORAGE_BACKEND)


if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
