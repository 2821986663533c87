from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...api.deps import get_session
from ...domain.orders import service
from ...domain.orders.schemas import OrderCreateRequest
from ..v1.schemas import OrderCreatedResponse, OrderOut

router = APIRouter()


@router.post("", response_model=OrderCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_order(payload: OrderCreateRequest, session: AsyncSession = Depends(get_session)) -> OrderCreatedResponse:
    order = await service.create_order(session, payload)
    return OrderCreatedResponse(message="Order created successfully", order=OrderOut.model_validate(order))


@router.get("/{order_id}", response_model=OrderOut)
async def get_order(order_id: int, session: AsyncSession = Depends(get_session)) -> OrderOut:
    order = await service.get_order(session, order_id)
    return OrderOut.model_validate(order)
