from fastapi import APIRouter
from laborhours.api.v1.endpoints import auth, questionnaire, settings
from laborhours.api.v1.endpoints.admin import admin_router

api_router = APIRouter()


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Simple health check endpoint for load balancer"""
    return {"status": "healthy", "service": "laborhours-backend"}


api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(questionnaire.router, prefix="/questionnaire", tags=["Questionnaire"])
api_router.include_router(settings.router, prefix="/settings", tags=["Settings"])
api_router.include_router(admin_router)
