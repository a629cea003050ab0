"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.booking.app.command import (
    activate_vip_coupon_use_case,
    apply_coupons_to_booking_use_case,
    cancel_booking_use_case,
    cancel_pending_booking_use_case,
    complete_booking_use_case,
    confirm_pending_booking_use_case,
    create_pending_booking_use_case,
    mark_booking_discounts_used_use_case,
)
from src.service.booking.app.query import (
    calculate_discounts_use_case,
    coupon_query_use_case,
    get_booking_use_case,
    get_display_price_use_case,
    get_slot_availability_use_case,
    validate_discount_code_use_case,
)
from src.service.booking.driving_adapter.http_controller import (
    booking_controller,
    coupon_controller,
)


WIRE_MODULES: list[ModuleType] = [
    create_pending_booking_use_case,
    confirm_pending_booking_use_case,
    cancel_pending_booking_use_case,
    cancel_booking_use_case,
    complete_booking_use_case,
    apply_coupons_to_booking_use_case,
    mark_booking_discounts_used_use_case,
    activate_vip_coupon_use_case,
    calculate_discounts_use_case,
    validate_discount_code_use_case,
    coupon_query_use_case,
    get_booking_use_case,
    get_slot_availability_use_case,
    get_display_price_use_case,
    booking_controller,
    coupon_controller,
]
