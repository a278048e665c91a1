"""
Checkout, downloads and the preview rule.

Owning a track means it is in the user's purchased set. Buying an album
grants the album and every one of its tracks.
"""

from typing import Literal, NamedTuple, Optional

from loguru import logger

from tunestream.core.exceptions import AccessDeniedError, NotFoundError, ValidationError

from ..models import Purchase, Track, User
from ..store import CatalogStore, NewPurchaseItem


class CartItem(NamedTuple):
    item_type: Literal["track", "album"]
    item_id: int


def checkout(
    store: CatalogStore,
    user: User,
    items: list[CartItem],
    payment_method: str,
    album_price: int,
) -> Purchase:
    """
    Buy the items in a cart.

    Raises:
        ValidationError: Empty cart, duplicate items, items not for sale or
            already owned
        NotFoundError: If an item does not exist
    """
    if not items:
        raise ValidationError("Cart is empty")
    if len(set(items)) != len(items):
        raise ValidationError("Cart contains duplicate items")

    owned_albums = {album.id for album in store.get_purchased_albums(user.id)}
    line_items: list[NewPurchaseItem] = []
    artist_ids: list[int] = []

    for item in items:
        if item.item_type == "track":
            track = store.get_track(item.item_id)
            if track is None:
                raise NotFoundError("track", item.item_id)
            if not track.is_purchasable:
                raise ValidationError(f"Track '{track.title}' is not available for purchase")
            if store.has_purchased_track(user.id, track.id):
                raise ValidationError(f"Track '{track.title}' already purchased")
            line_items.append(
                NewPurchaseItem(
                    item_type="track",
                    price=track.purchase_price,
                    title=track.title,
                    artist_name=track.artist_name,
                    track_id=track.id,
                )
            )
            artist_ids.append(track.artist_id)
        elif item.item_type == "album":
            album = store.get_album(item.item_id)
            if album is None:
                raise NotFoundError("album", item.item_id)
            if album.id in owned_albums:
                raise ValidationError(f"Album '{album.title}' already purchased")
            line_items.append(
                NewPurchaseItem(
                    item_type="album",
                    price=album_price,
                    title=album.title,
                    artist_name=album.artist_name,
                    album_id=album.id,
                )
            )
            artist_ids.append(album.artist_id)
        else:
            raise ValidationError(f"Invalid item type: {item.item_type}")

    purchase = store.create_purchase(user.id, line_items, payment_method)

    for line, artist_id in zip(line_items, artist_ids):
        if line.item_type == "track":
            store.add_track_to_library(user.id, line.track_id, purchased=True)
        else:
            store.add_album_to_library(user.id, line.album_id, purchased=True)
            for track in store.get_album_tracks(line.album_id):
                store.add_track_to_library(user.id, track.id, purchased=True)

        store.record_purchase_event(
            artist_id=artist_id,
            amount=line.price,
            track_id=line.track_id,
            album_id=line.album_id,
            user_id=user.id,
        )

    logger.info(
        f"User {user.id} purchased {len(line_items)} item(s) for {purchase.total_amount} cents"
    )
    return purchase


def can_download(store: CatalogStore, user: User, track_id: int) -> bool:
    return user.has_paid_tier or store.has_purchased_track(user.id, track_id)


def download_track(store: CatalogStore, user: User, track_id: int) -> Track:
    """
    Add a track to the user's downloads.

    Raises:
        NotFoundError: If the track does not exist
        AccessDeniedError: If the track is not purchased and the tier is free
    """
    track = store.get_track(track_id)
    if track is None:
        raise NotFoundError("track", track_id)
    if not can_download(store, user, track_id):
        raise AccessDeniedError(
            "Purchase this track or upgrade your subscription to download it"
        )

    store.add_track_to_library(user.id, track_id, downloaded=True)
    return track


def should_preview(store: CatalogStore, user: Optional[User], track: Track) -> bool:
    """Free-tier listeners only hear a preview of tracks they have not bought."""
    if user is None:
        return True
    if user.has_paid_tier:
        return False
    return not store.has_purchased_track(user.id, track.id)
