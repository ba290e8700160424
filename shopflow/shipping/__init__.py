"""
Shipping — distance-based delivery pricing.

    from shopflow import shipping

    estimator = shipping.ShippingEstimator(shipping.GoongClient(settings.goong, http), settings.tariff)
    result = await estimator.estimate(origin, "1 Lê Duẩn, Quận 1", is_return_leg=False)
"""

from shopflow.shipping._fee import round_to_unit, shipping_fee
from shopflow.shipping._goong import GoongClient
from shopflow.shipping._estimator import RoutingProvider, ShippingEstimator

__all__ = (
    "round_to_unit",
    "shipping_fee",
    "GoongClient",
    "RoutingProvider",
    "ShippingEstimator",
)
