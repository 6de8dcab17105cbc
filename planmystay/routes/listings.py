"""
Listings routes — /listings (gated)

  GET    /listings               index, optional ?q= search
  GET    /listings/new           create form
  POST   /listings               create
  GET    /listings/{id}          show, with reviews
  GET    /listings/{id}/edit     edit form        (owner only)
  PUT    /listings/{id}          update           (owner only)
  DELETE /listings/{id}          delete + reviews (owner only)

require_auth is attached at mount time in create_app(); the handlers take
the resolved Identity from it again to know who is acting.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from planmystay import store
from planmystay.auth import Identity, require_auth
from planmystay.database import get_db
from planmystay.models.listing import ListingORM
from planmystay.routes.forms import parse_form
from planmystay.schemas import ListingForm, ListingUpdateForm, first_error_message
from planmystay.sessions import flash
from planmystay.templating import render

router = APIRouter(tags=["listings"])
logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Listing you requested does not exist!"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _load_or_redirect(
    request: Request,
    db: AsyncSession,
    listing_id: str,
) -> tuple[Optional[ListingORM], Optional[RedirectResponse]]:
    listing = await store.get_listing(db, listing_id)
    if listing is None:
        flash(request, NOT_FOUND_MESSAGE, "error")
        return None, RedirectResponse("/listings", status_code=303)
    return listing, None


def _forbid_unless_owner(request: Request, listing: ListingORM, user: Identity) -> Optional[RedirectResponse]:
    if listing.owner_id != user.id:
        logger.warning("Ownership check failed listing_id=%s user_id=%s", listing.id, user.id)
        flash(request, "You don't have permission to do that", "error")
        return RedirectResponse(f"/listings/{listing.id}", status_code=303)
    return None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("")
async def index(request: Request, q: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    listings = await store.list_listings(db, query=q)
    return render(request, "listings/index.html", {"listings": listings, "q": q or ""})


@router.get("/new")
async def new_form(request: Request):
    return render(request, "listings/new.html")


@router.post("")
async def create(
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: Identity = Depends(require_auth),
):
    try:
        form = await parse_form(request, ListingForm)
    except ValidationError as exc:
        flash(request, first_error_message(exc), "error")
        return RedirectResponse("/listings/new", status_code=303)

    listing = await store.create_listing(db, form, owner_id=user.id)
    flash(request, "New listing created!", "success")
    return RedirectResponse(f"/listings/{listing.id}", status_code=303)


@router.get("/{listing_id}")
async def show(request: Request, listing_id: str, db: AsyncSession = Depends(get_db)):
    listing, redirect = await _load_or_redirect(request, db, listing_id)
    if redirect:
        return redirect
    owner = await store.get_user(db, listing.owner_id)
    reviews = await store.list_reviews(db, listing.id)
    return render(
        request,
        "listings/show.html",
        {
            "listing": listing,
            "owner": owner.username if owner else "unknown",
            "reviews": reviews,
        },
    )


@router.get("/{listing_id}/edit")
async def edit_form(
    request: Request,
    listing_id: str,
    db: AsyncSession = Depends(get_db),
    user: Identity = Depends(require_auth),
):
    listing, redirect = await _load_or_redirect(request, db, listing_id)
    if redirect:
        return redirect
    denied = _forbid_unless_owner(request, listing, user)
    if denied:
        return denied
    return render(request, "listings/edit.html", {"listing": listing})


@router.put("/{listing_id}")
async def update(
    request: Request,
    listing_id: str,
    db: AsyncSession = Depends(get_db),
    user: Identity = Depends(require_auth),
):
    listing, redirect = await _load_or_redirect(request, db, listing_id)
    if redirect:
        return redirect
    denied = _forbid_unless_owner(request, listing, user)
    if denied:
        return denied

    try:
        form = await parse_form(request, ListingUpdateForm)
    except ValidationError as exc:
        flash(request, first_error_message(exc), "error")
        return RedirectResponse(f"/listings/{listing.id}/edit", status_code=303)

    await store.update_listing(db, listing, form)
    flash(request, "Listing updated!", "success")
    return RedirectResponse(f"/listings/{listing.id}", status_code=303)


@router.delete("/{listing_id}")
async def destroy(
    request: Request,
    listing_id: str,
    db: AsyncSession = Depends(get_db),
    user: Identity = Depends(require_auth),
):
    listing, redirect = await _load_or_redirect(request, db, listing_id)
    if redirect:
        return redirect
    denied = _forbid_unless_owner(request, listing, user)
    if denied:
        return denied

    await store.delete_listing(db, listing)
    flash(request, "Listing deleted!", "success")
    return RedirectResponse("/listings", status_code=303)
