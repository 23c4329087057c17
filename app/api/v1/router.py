from fastapi import APIRouter

from app.api.v1.account_subclassifications import router as account_subclassifications_router
from app.api.v1.contacts import router as contacts_router
from app.api.v1.functions import router as functions_router
from app.api.v1.health import router as health_router
from app.api.v1.users import router as users_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(users_router, prefix="/users", tags=["users"])
router.include_router(contacts_router, prefix="/contacts", tags=["contacts"])
router.include_router(functions_router, prefix="/functions", tags=["functions"])
router.include_router(
    account_subclassifications_router,
    prefix="/account-subclassifications",
    tags=["account-subclassifications"],
)
