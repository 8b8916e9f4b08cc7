"""Contact list routes."""

import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from personas.constants import user_avatar_url
from web.auth import get_current_user
from web.contact_store import add_contact, get_contact, list_contacts, remove_contact
from web.models import Contact, ContactAdd
from web.user_store import get_user_by_email

logger = structlog.get_logger()

router = APIRouter(prefix="/api/contacts", tags=["contacts"])


@router.get("", response_model=list[Contact])
async def get_contacts(user: dict = Depends(get_current_user)):
    return [Contact(**c) for c in list_contacts(user["id"])]


@router.post("", response_model=Contact, status_code=201)
async def create_contact(body: ContactAdd, user: dict = Depends(get_current_user)):
    """Add another registered user to the caller's contacts by email."""
    target = get_user_by_email(body.email)
    if not target:
        raise HTTPException(status_code=404, detail="No user found with that email.")
    if target["id"] == user["id"]:
        raise HTTPException(status_code=400, detail="You cannot add yourself as a contact.")
    if get_contact(user["id"], target["id"]):
        raise HTTPException(status_code=409, detail="This user is already in your contacts.")

    contact = add_contact(
        user["id"],
        target["id"],
        name=target["name"] or target["email"].split("@")[0],
        avatar_url=target["avatar_url"] or user_avatar_url(target["id"]),
    )
    return Contact(**contact)


@router.delete("/{contact_id}", status_code=204)
async def delete_contact(contact_id: str, user: dict = Depends(get_current_user)):
    if not remove_contact(user["id"], contact_id):
        raise HTTPException(status_code=404, detail="Contact not found")
    return Response(status_code=204)
