"""
Centralized application constants.

Single point of truth for the business constants shared by the discount
engine, the order composer and the address reconciler.
"""

# ==============================================================================
# TAX
# ==============================================================================

# Fixed uplift used to express the pickup discount including VAT
VAT_UPLIFT = 1.21

# VAT fraction used when the ERP item carries no rate
DEFAULT_VAT_RATE = 0.21

# ==============================================================================
# SHOPIFY NOTE ATTRIBUTES
# ==============================================================================

DELIVERY_TYPE_ATTRIBUTE = "selected_delivery_type"
PICKUP_DATE_ATTRIBUTE = "pickup_delivery_date"
REFERENCE_NUMBER_ATTRIBUTE = "reference_number"

# Substring marking pickup orders and the pickup discount application
PICKUP_MARKER = "pickup"

# Shipping line titles that mean the order goes out with a carrier
CARRIER_FEE_MARKERS = ["Verzendkosten", "Gratis"]

# ==============================================================================
# EXACTONLINE
# ==============================================================================

# crm/Addresses Type codes
ADDRESS_TYPE_BILLING = 3
ADDRESS_TYPE_DELIVERY = 4

DEFAULT_UNIT_CODE = "pc"
DEFAULT_DELIVERY_DAYS = 7

# ==============================================================================
# CACHE KEYS
# ==============================================================================

LOCK_KEY_PREFIX = "lock_order_"
SEEN_KEY_PREFIX = "shopify_order_"
