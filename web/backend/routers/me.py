from fastapi import APIRouter, Depends

from tunestream.core.config import Config
from tunestream.domain.accounts import (
    CartItem,
    checkout,
    is_active,
    subscribe,
    update_profile,
    update_subscription,
)
from tunestream.domain.models import NotificationSettings, User, UserPreferences
from tunestream.domain.store import CatalogStore

from ..deps import get_config, get_store, require_user
from ..schemas import (
    CheckoutRequest,
    PreferencesModel,
    ProfileUpdateRequest,
    PurchaseResponse,
    SubscribeRequest,
    SubscriptionPlanResponse,
    SubscriptionResponse,
    UpdateSubscriptionRequest,
    UserResponse,
    to_plain,
)

router = APIRouter()


def _subscription_response(store: CatalogStore, subscription) -> SubscriptionResponse:
    if subscription is None:
        return SubscriptionResponse(active=False)
    plan = store.get_subscription_plan(subscription.plan_id)
    return SubscriptionResponse.from_domain(
        subscription, active=is_active(subscription), plan=to_plain(plan)
    )


@router.patch("/me", response_model=UserResponse)
async def update_me(
    body: ProfileUpdateRequest,
    user: User = Depends(require_user),
    store: CatalogStore = Depends(get_store),
):
    updated = update_profile(store, user, **body.changes())
    return UserResponse.from_domain(updated)


@router.get("/me/preferences", response_model=PreferencesModel)
async def get_preferences(
    user: User = Depends(require_user), store: CatalogStore = Depends(get_store)
):
    preferences = store.get_user_preferences(user.id) or UserPreferences()
    return PreferencesModel.from_domain(preferences)


@router.put("/me/preferences", response_model=PreferencesModel)
async def save_preferences(
    body: PreferencesModel,
    user: User = Depends(require_user),
    store: CatalogStore = Depends(get_store),
):
    preferences = UserPreferences(
        language=body.language,
        theme=body.theme,
        audio_quality=body.audio_quality,
        autoplay=body.autoplay,
        notifications=NotificationSettings(**body.notifications.model_dump()),
    )
    return PreferencesModel.from_domain(store.save_user_preferences(user.id, preferences))


@router.get("/subscription-plans", response_model=list[SubscriptionPlanResponse])
async def subscription_plans(store: CatalogStore = Depends(get_store)):
    return [SubscriptionPlanResponse.from_domain(p) for p in store.get_subscription_plans()]


@router.get("/me/subscription", response_model=SubscriptionResponse)
async def get_subscription(
    user: User = Depends(require_user), store: CatalogStore = Depends(get_store)
):
    """``{"active": false}`` when the user never subscribed."""
    return _subscription_response(store, store.get_user_subscription(user.id))


@router.post("/me/subscription", response_model=SubscriptionResponse, status_code=201)
async def create_subscription(
    body: SubscribeRequest,
    user: User = Depends(require_user),
    store: CatalogStore = Depends(get_store),
):
    subscription = subscribe(
        store,
        user,
        plan_id=body.plan_id,
        payment_method=body.payment_method,
        auto_renew=body.auto_renew,
    )
    return _subscription_response(store, subscription)


@router.patch("/me/subscription", response_model=SubscriptionResponse)
async def change_subscription(
    body: UpdateSubscriptionRequest,
    user: User = Depends(require_user),
    store: CatalogStore = Depends(get_store),
):
    subscription = update_subscription(store, user, **body.model_dump(exclude_unset=True))
    return _subscription_response(store, subscription)


@router.get("/me/purchases", response_model=list[PurchaseResponse])
async def purchases(
    user: User = Depends(require_user), store: CatalogStore = Depends(get_store)
):
    return [PurchaseResponse.from_domain(p) for p in store.get_user_purchases(user.id)]


@router.post("/me/purchases", response_model=PurchaseResponse, status_code=201)
async def purchase(
    body: CheckoutRequest,
    user: User = Depends(require_user),
    store: CatalogStore = Depends(get_store),
    config: Config = Depends(get_config),
):
    items = [CartItem(item.item_type, item.item_id) for item in body.items]
    result = checkout(
        store,
        user,
        items,
        payment_method=body.payment_method,
        album_price=config.catalog.album_price,
    )
    return PurchaseResponse.from_domain(result)
