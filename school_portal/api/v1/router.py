"""Main API router aggregating all module routers."""

from fastapi import APIRouter

from school_portal.api.v1.endpoints import (
    access_cards,
    auth,
    result_checker,
    results,
    students,
)

api_router = APIRouter()

# Authentication (no admin token required)
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"],
)

# Public result checker
api_router.include_router(
    result_checker.router,
    prefix="/result-checker",
    tags=["Result Checker"],
)

# Students (admin)
api_router.include_router(
    students.router,
    prefix="/students",
    tags=["Students"],
)

# Results (admin)
api_router.include_router(
    results.router,
    prefix="/results",
    tags=["Results"],
)

# Access cards (admin)
api_router.include_router(
    access_cards.router,
    prefix="/access-cards",
    tags=["Access Cards"],
)
