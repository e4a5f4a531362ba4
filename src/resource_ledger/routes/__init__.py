from fastapi import APIRouter

from . import auth, departments, movements, resources

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(departments.router)
api_router.include_router(resources.router)
api_router.include_router(movements.router)
