from fastapi import APIRouter

from exprguard.api.routes import expressions, utils

api_router = APIRouter()
api_router.include_router(expressions.router)
api_router.include_router(utils.router)
