from jewel_pos.models.rate import MetalType, Rate, RateHistory
from jewel_pos.models.customer import Customer
from jewel_pos.models.bill import Bill, BillItem
from jewel_pos.models.voucher import PurchaseVoucher, PurchaseVoucherItem
from jewel_pos.models.bookkeeping import DocumentSequence, TurnoverAdjustment
from jewel_pos.models.otp import EmailOTP
from jewel_pos.models.product import Product

__all__ = [
    "MetalType",
    "Rate",
    "RateHistory",
    "Customer",
    "Bill",
    "BillItem",
    "PurchaseVoucher",
    "PurchaseVoucherItem",
    "DocumentSequence",
    "TurnoverAdjustment",
    "EmailOTP",
    "Product",
]
