# api/routes_subscriptions.py
from datetime import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_container
from core.container import ServiceContainer
from core.response import created, ok
from models.subscription import SubscriptionCreate, SubscriptionUpdate

router = APIRouter()


@router.post("", status_code=201)
async def create_subscription(payload: SubscriptionCreate, c: ServiceContainer = Depends(get_container)):
    """
    Create a daily reminder.

    - 201 Created: returns the stored record (with id and created_at)
    - 422: missing/invalid field; nothing reaches the store
    """
    sub = await c.store.create(payload)
    return created(sub)


@router.get("")
async def list_subscriptions(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    c: ServiceContainer = Depends(get_container),
):
    """List subscriptions ordered by id."""
    subs = await c.store.list(limit=limit, offset=offset)
    return ok(subs)


@router.get("/due")
async def due_subscriptions(
    at: Optional[time] = Query(None, description="HH:MM; defaults to the current minute"),
    c: ServiceContainer = Depends(get_container),
):
    """Subscriptions the scheduler would notify at the given minute. Read-only."""
    minute = c.matcher.current_minute(at)
    subs = await c.matcher.find_due(minute)
    return ok({"minute": minute.strftime("%H:%M"), "subscriptions": subs})


@router.get("/{subscription_id}")
async def get_subscription(subscription_id: int, c: ServiceContainer = Depends(get_container)):
    sub = await c.store.get(subscription_id)
    if sub is None:
        raise HTTPException(status_code=404, detail="Subscription not found")
    return ok(sub)


@router.patch("/{subscription_id}")
async def update_subscription(
    subscription_id: int,
    payload: SubscriptionUpdate,
    c: ServiceContainer = Depends(get_container),
):
    """
    Partial update. Only fields present in the body change.

    - 400: empty body
    - 404: unknown id
    """
    changes = payload.changes()
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    sub = await c.store.update(subscription_id, changes)
    if sub is None:
        raise HTTPException(status_code=404, detail="Subscription not found")
    return ok(sub)


@router.delete("/{subscription_id}")
async def delete_subscription(subscription_id: int, c: ServiceContainer = Depends(get_container)):
    deleted = await c.store.delete(subscription_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Subscription not found")
    return ok({"deleted": True, "id": subscription_id})
