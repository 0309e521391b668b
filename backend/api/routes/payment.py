# api/routes/payment.py

from fastapi import APIRouter, Depends

from api.container import ServiceContainer
from api.dependencies import get_services
from api.errors import upstream_boundary
from schemas import PaymentIntentRequest, PaymentIntentResponse

router = APIRouter(prefix="/payment", tags=["payment"])


@router.post("/create-intent", response_model=PaymentIntentResponse, response_model_by_alias=True)
async def create_payment_intent(body: PaymentIntentRequest, services: ServiceContainer = Depends(get_services)):
    with upstream_boundary("Failed to create payment intent"):
        client_secret = await services.intake.create_payment_intent(body)
    return PaymentIntentResponse(client_secret=client_secret)
