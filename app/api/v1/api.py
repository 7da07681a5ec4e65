from fastapi import APIRouter
from app.api.v1.routes.auth import router as auth_router
from app.api.v1.routes.catalog import router as catalog_router
from app.api.v1.routes.bookings import router as bookings_router
from app.api.v1.routes.tourists import router as tourists_router
from app.api.v1.routes.payments import router as payments_router
from app.api.v1.routes.sales import router as sales_router
from app.api.v1.routes.profiles import router as profiles_router
from app.api.v1.routes.users import router as users_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth_router)
api_router.include_router(catalog_router)
api_router.include_router(bookings_router)
api_router.include_router(tourists_router)
api_router.include_router(payments_router)
api_router.include_router(sales_router)
api_router.include_router(profiles_router)
api_router.include_router(users_router)
