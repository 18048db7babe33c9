"""Store settings service - singleton access and admin updates."""
import logging
from typing import Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from storefront.models import StoreSettings, SETTINGS_ID
from storefront.exceptions import ValidationError

logger = logging.getLogger(__name__)

UNSET = object()


def get_store_settings(session) -> StoreSettings:
    """
    Return the singleton settings row, creating it with defaults if missing.

    Creation commits on its own so a concurrent first request that loses the
    insert race simply re-reads the winner's row.
    """
    settings = session.query(StoreSettings).filter_by(id=SETTINGS_ID).first()
    if settings:
        return settings

    settings = StoreSettings(
        id=SETTINGS_ID,
        nth_order_discount=current_app.config.get('DEFAULT_NTH_ORDER', 5),
        discount_percent=current_app.config.get('DEFAULT_REWARD_PERCENT', 10),
        total_orders=0,
        default_discount_expiry=None,
    )
    session.add(settings)
    try:
        session.commit()
        logger.info("[SETTINGS] Created default store settings")
    except IntegrityError:
        session.rollback()
        settings = session.query(StoreSettings).filter_by(id=SETTINGS_ID).one()
    return settings


def update_store_settings(
    session,
    nth_order_discount: Optional[int] = None,
    discount_percent: Optional[int] = None,
    default_discount_expiry=UNSET,
) -> StoreSettings:
    """
    Update reward scheme settings.

    The order counter is never touched here; only settlement moves it.
    Passing default_discount_expiry=None clears the default expiry.
    """
    settings = get_store_settings(session)

    if nth_order_discount is not None:
        if nth_order_discount < 1:
            raise ValidationError('nthOrderDiscount must be at least 1')
        settings.nth_order_discount = nth_order_discount

    if discount_percent is not None:
        if not 1 <= discount_percent <= 100:
            raise ValidationError('discountPercent must be between 1 and 100')
        settings.discount_percent = discount_percent

    if default_discount_expiry is not UNSET:
        if default_discount_expiry is not None and default_discount_expiry < 1:
            raise ValidationError('defaultDiscountExpiry must be at least 1 day')
        settings.default_discount_expiry = default_discount_expiry

    session.commit()
    logger.info(
        f"[SETTINGS] Updated: n={settings.nth_order_discount}, "
        f"percent={settings.discount_percent}, expiry={settings.default_discount_expiry}"
    )
    return settings
