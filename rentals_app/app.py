import logging

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.catch_error_middleware import ErrorHandlerMiddleware
from core.exception_handler import HTTPErrorHandler, ValidationErrorHandler
from core.lifespan import lifespan
from core.settings import settings
from routes.admin_routes import router as admin_router
from routes.apartment_routes import router as apartment_router
from routes.booking_routes import router as booking_router
from routes.payment_routes import router as payment_router
from routes.user_routes import router as user_router
from routes.wishlist_routes import router as wishlist_router

logging.basicConfig(level=logging.INFO)
app = FastAPI(
    lifespan=lifespan,
    title=settings.PROJECT_NAME,
    version="1.0.0",
)

app.include_router(apartment_router, prefix="/apartments")
app.include_router(booking_router, prefix="/bookings")
app.include_router(payment_router, prefix="/payments")
app.include_router(wishlist_router, prefix="/wishlist")
app.include_router(user_router, prefix="/users")
app.include_router(admin_router, prefix="/admin")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["System"])
async def health_check():
    return {"status": "ok"}


app.add_exception_handler(
    RequestValidationError,
    ValidationErrorHandler(),
)

app.add_exception_handler(
    StarletteHTTPException,
    HTTPErrorHandler(),
)

app.add_middleware(ErrorHandlerMiddleware)


if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8001)
