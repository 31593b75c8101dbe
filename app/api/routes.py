from fastapi import APIRouter

from . import auth
from . import data
from . import pieces
from . import universities

router = APIRouter(prefix="/api")

router.include_router(auth.router)
router.include_router(universities.router)
router.include_router(data.router)
router.include_router(pieces.router)
