from fastapi import APIRouter
from app.api.v1.endpoints import (
    health, users, password, clients, projects, delivery_notes
)

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(password.router, prefix="/password", tags=["password"])

# Resource endpoints
api_router.include_router(clients.router, prefix="/client", tags=["clients"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(delivery_notes.router, prefix="/deliverynotes", tags=["delivery notes"])
