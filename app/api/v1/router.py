"""Main API router aggregating all v1 routes."""

from fastapi import APIRouter

from app.api.v1 import (
    auth,
    contacts,
    conversations,
    messages,
    notes,
    orders,
    users,
    webhooks,
    whatsapp_accounts,
)

api_router = APIRouter()

# Include all route modules
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(whatsapp_accounts.router)
api_router.include_router(contacts.router)
api_router.include_router(conversations.router)
api_router.include_router(notes.router)
api_router.include_router(orders.router)
api_router.include_router(messages.router)
api_router.include_router(webhooks.router)
