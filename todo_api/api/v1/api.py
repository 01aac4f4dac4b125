from fastapi import APIRouter
from todo_api.api.v1.endpoints import auth, health, users, items, todos, notes

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])

# Resource endpoints
api_router.include_router(items.router, prefix="/items", tags=["items"])
api_router.include_router(todos.router, prefix="/items/{item_id}/todos", tags=["todos"])
api_router.include_router(notes.router, prefix="/items/{item_id}/notes", tags=["notes"])
