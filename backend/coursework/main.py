import logging

from fastapi import FastAPI

from .db import Base, engine
from .settings import settings
from .routers import auth
from .routers import latex
from .routers import assignments
from . import models  # noqa: F401  (registers tables on Base.metadata)

logging.basicConfig(
	level=getattr(logging, settings.log_level.upper(), logging.INFO),
	format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger("coursework")

app = FastAPI(title="Coursework API")
app.include_router(auth.router)
app.include_router(latex.router)
app.include_router(assignments.router)


@app.get("/info")
def root():
	return {"status": "ok"}


@app.on_event("startup")
async def startup_event():
	# Initialize DB schema
	Base.metadata.create_all(bind=engine)
	logger.info("Coursework API started (public_dir=%s)", settings.public_dir)
