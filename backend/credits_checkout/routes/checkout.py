from __future__ import annotations

import json
from typing import Annotated

from fastapi import APIRouter, Header, Request, Response, status
from pydantic import ValidationError

from ..auth import CurrentUser
from ..errors import InvalidRequestError
from ..schemas import CheckoutErrorResponse, CheckoutSessionResponse, PurchaseRequest
from ..services import checkout_service

router = APIRouter(tags=["checkout"])

CHECKOUT_PATHS = ("/create-stripe-checkout", "/functions/v1/create-stripe-checkout")


async def _read_purchase_request(request: Request) -> PurchaseRequest:
    raw = await request.body()
    try:
        body = json.loads(raw) if raw else None
    except ValueError as exc:
        raise InvalidRequestError("Invalid request body") from exc
    if not isinstance(body, dict):
        raise InvalidRequestError("Invalid request body")
    try:
        return PurchaseRequest.model_validate(body)
    except ValidationError as exc:
        raise InvalidRequestError("Invalid request body") from exc


async def create_stripe_checkout(
    request: Request,
    current: CurrentUser,
    origin: Annotated[str | None, Header()] = None,
) -> CheckoutSessionResponse:
    payload = await _read_purchase_request(request)
    return await checkout_service.handle_checkout_request(current, payload, origin=origin)


async def checkout_preflight() -> Response:
    return Response(status_code=status.HTTP_200_OK)


for _path in CHECKOUT_PATHS:
    router.add_api_route(
        _path,
        create_stripe_checkout,
        methods=["POST"],
        response_model=CheckoutSessionResponse,
        responses={400: {"model": CheckoutErrorResponse}},
    )
    router.add_api_route(
        _path,
        checkout_preflight,
        methods=["OPTIONS"],
        include_in_schema=False,
    )
