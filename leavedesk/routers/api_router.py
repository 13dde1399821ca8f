from fastapi import APIRouter
from leavedesk.routers import leave

# Centralized API router hub: main.py only imports this one.
api_router = APIRouter()

api_router.include_router(leave.router, tags=["Leave"])
