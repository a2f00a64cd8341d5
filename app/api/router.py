from fastapi import APIRouter
from app.modules.assets.router import router as assets_router
from app.modules.labels.router import router as labels_router
from app.modules.segments.router import router as segments_router
from app.modules.regions.router import router as regions_router
from app.modules.exports.router import router as exports_router
from app.modules.audit.router import router as audit_router

api_router = APIRouter()
api_router.include_router(assets_router, prefix="/assets", tags=["assets"])
# the routers below carry their own /assets/{id}/... and /<resource>/{id} paths
api_router.include_router(labels_router, tags=["labels"])
api_router.include_router(segments_router, tags=["segments"])
api_router.include_router(regions_router, tags=["regions"])
api_router.include_router(exports_router, tags=["exports"])
api_router.include_router(audit_router, tags=["audit"])

@api_router.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
