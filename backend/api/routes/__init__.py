# api/routes/__init__.py
from fastapi import APIRouter

from api.routes import djtunez, payment, spotify, stripe_connect, user, webhooks
from schemas import ErrorResponse

api_router = APIRouter(
    prefix="/api",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
api_router.include_router(djtunez.router)
api_router.include_router(payment.router)
api_router.include_router(user.router)
api_router.include_router(stripe_connect.router)
api_router.include_router(spotify.router)
api_router.include_router(webhooks.router)

__all__ = ["api_router"]
