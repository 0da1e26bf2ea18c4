from fastapi import APIRouter

api_router = APIRouter()

# Import route modules here
from swiftnotes.routes import users, user_preferences

api_router.include_router(users.router)
api_router.include_router(user_preferences.router)
