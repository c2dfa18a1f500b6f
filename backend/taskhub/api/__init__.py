"""API router package."""

from fastapi import APIRouter

from taskhub.api.v1 import auth, comments, health, projects, tasks, users

router = APIRouter()

# Include all API routers
router.include_router(health.router, tags=["Health"])
router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(users.router, prefix="/user", tags=["Users"])
router.include_router(projects.router, prefix="/post", tags=["Projects"])
router.include_router(tasks.router, prefix="/post", tags=["Tasks"])
router.include_router(comments.router, prefix="/post", tags=["Comments"])
