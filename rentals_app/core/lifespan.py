import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import text

from fintechs.stripe_gateway import build_payment_gateway

from .get_db import async_engine

logger = logging.getLogger("startup")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Waiting for application startup...")

    try:
        async with async_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connected.")
    except Exception:
        logger.exception("Database connection failed")

    gateway = build_payment_gateway()
    app.state.payment_gateway = gateway
    if gateway.configured:
        logger.info("Stripe payment gateway configured.")
    else:
        logger.warning("STRIPE_SECRET_KEY is not set; payment endpoints will return 503.")

    logger.info("Application startup complete.")

    yield

    await async_engine.dispose()
    logger.info("Database engine disposed.")
