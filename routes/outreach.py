"""
Outreach Router
Newsletter signups and contact form submissions from site visitors
"""

from fastapi import APIRouter, Depends, status

from schemas.validation import ContactMessageCreate, SubscriptionCreate
from storage import Storage, get_storage
from utils.course_assembly import serialize_contact_message, serialize_subscription

router = APIRouter()


@router.post("/subscribe", status_code=status.HTTP_201_CREATED, summary="Subscribe to the newsletter")
async def subscribe(payload: SubscriptionCreate, storage: Storage = Depends(get_storage)):
    subscription = storage.subscribe(payload.email)
    return {"message": "Subscription successful", "data": serialize_subscription(subscription)}


@router.post("/contact", status_code=status.HTTP_201_CREATED, summary="Send a contact form message")
async def contact(payload: ContactMessageCreate, storage: Storage = Depends(get_storage)):
    message = storage.submit_contact_message(payload.name, payload.email, payload.subject, payload.message)
    return {"message": "Message sent successfully", "data": serialize_contact_message(message)}
