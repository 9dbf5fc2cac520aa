from fastapi import APIRouter
from app.routers import auth, criteria, users, assignments, evaluations, movements

# Centralized API router hub: main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(criteria.router, tags=["Criteria"])
api_router.include_router(users.router, tags=["Users"])
api_router.include_router(assignments.router, tags=["Evaluator Assignments"])
api_router.include_router(evaluations.router, tags=["Evaluations"])
api_router.include_router(movements.router, tags=["Movements"])
