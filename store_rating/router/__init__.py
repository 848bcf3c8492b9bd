from fastapi import APIRouter
from . import auth
from . import admin
from . import owner
from . import user
router = APIRouter()

def init_router_root(app):
    @app.get("/health", tags=["Main"])
    async def health():
        return {"status": "OK", "message": "Server is running!"}

# Include Routers
router.include_router(auth.router, prefix="/user", tags=["Auth"])
router.include_router(user.router, prefix="/user", tags=["User"])
router.include_router(admin.router, prefix="/admin", tags=["Admin"])
router.include_router(owner.router, prefix="/owner", tags=["Owner"])


def get_router():
    return router
