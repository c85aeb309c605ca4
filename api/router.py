from fastapi import APIRouter
from app.settings import settings
from api.endpoints import evaluate, health, result, upload

api_router = APIRouter(prefix=settings.API_PREFIX)
for module, tag in ((upload, "upload"), (evaluate, "evaluation"), (result, "evaluation"), (health, "health")):
    api_router.include_router(module.router, tags=[tag])
