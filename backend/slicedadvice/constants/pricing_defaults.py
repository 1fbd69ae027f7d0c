"""Default pricing configuration values."""

from __future__ import annotations

from typing import Any, Dict

PRICING_DEFAULTS: Dict[str, Any] = {
    # Customer-facing service fee: price * pct + fixed
    "service_fee_pct": 0.029,
    "service_fee_fixed": 0.30,
    # Platform cut of the expert's net price, in percent
    "marketplace_fee_pct": 20,
}
