from fastapi import APIRouter
from app.api.endpoints import query, schema

api_router = APIRouter()

# Combine all sub-routers into one
api_router.include_router(schema.router)
api_router.include_router(query.router)
