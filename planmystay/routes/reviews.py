"""
Reviews routes — /listings/{listing_id}/reviews (gated)

  POST   /listings/{listing_id}/reviews              create
  PUT    /listings/{listing_id}/reviews/{review_id}  update (author only)
  DELETE /listings/{listing_id}/reviews/{review_id}  delete (author only)

Every outcome redirects back to the listing page with a flash banner.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from planmystay import store
from planmystay.auth import Identity, require_auth
from planmystay.database import get_db
from planmystay.routes.forms import parse_form
from planmystay.schemas import ReviewForm, ReviewUpdateForm, first_error_message
from planmystay.sessions import flash

router = APIRouter(tags=["reviews"])
logger = logging.getLogger(__name__)


def _back_to_listing(listing_id: str) -> RedirectResponse:
    return RedirectResponse(f"/listings/{listing_id}", status_code=303)


@router.post("")
async def create(
    request: Request,
    listing_id: str,
    db: AsyncSession = Depends(get_db),
    user: Identity = Depends(require_auth),
):
    listing = await store.get_listing(db, listing_id)
    if listing is None:
        flash(request, "Listing you requested does not exist!", "error")
        return RedirectResponse("/listings", status_code=303)

    try:
        form = await parse_form(request, ReviewForm)
    except ValidationError as exc:
        flash(request, first_error_message(exc), "error")
        return _back_to_listing(listing_id)

    await store.create_review(db, listing_id, user.id, form)
    flash(request, "New review created!", "success")
    return _back_to_listing(listing_id)


@router.put("/{review_id}")
async def update(
    request: Request,
    listing_id: str,
    review_id: str,
    db: AsyncSession = Depends(get_db),
    user: Identity = Depends(require_auth),
):
    review = await store.get_review(db, listing_id, review_id)
    if review is None:
        flash(request, "Review not found", "error")
        return _back_to_listing(listing_id)
    if review.author_id != user.id:
        flash(request, "You can only edit your own reviews", "error")
        return _back_to_listing(listing_id)

    try:
        form = await parse_form(request, ReviewUpdateForm)
    except ValidationError as exc:
        flash(request, first_error_message(exc), "error")
        return _back_to_listing(listing_id)

    await store.update_review(db, review, form)
    flash(request, "Review updated!", "success")
    return _back_to_listing(listing_id)


@router.delete("/{review_id}")
async def destroy(
    request: Request,
    listing_id: str,
    review_id: str,
    db: AsyncSession = Depends(get_db),
    user: Identity = Depends(require_auth),
):
    review = await store.get_review(db, listing_id, review_id)
    if review is None:
        flash(request, "Review not found", "error")
        return _back_to_listing(listing_id)
    if review.author_id != user.id:
        flash(request, "You can only delete your own reviews", "error")
        return _back_to_listing(listing_id)

    await store.delete_review(db, review)
    flash(request, "Review deleted!", "success")
    return _back_to_listing(listing_id)
