"""
Main API router that includes all route modules.
"""
from fastapi import APIRouter
from expenseflow.api.routes import auth, users, approval_rules, expenses, manager

api_router = APIRouter()

# Include all route modules
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(approval_rules.router)
api_router.include_router(expenses.router)
api_router.include_router(manager.router)
