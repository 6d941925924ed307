from .tenancy import Organization, OrganizationSetting
from .staff import Staff, User
from .customers import Customer, CustomerRewardAccount, LoyaltyTransaction
from .catalog import ServiceItem, ServiceConsumable, GiftCardTemplate, PackageTemplate, PackageTemplateItem
from .inventory import Product, InventoryTransaction
from .billing import Appointment, Invoice, InvoiceLineItem, InvoiceStockConsumption
from .gift_cards import GiftCard, GiftCardLog
from .packages import CustomerPackage, CustomerPackageItem, CustomerPackageLog
from .rollups import DailySale
from .audit import InvoiceCorrection

__all__ = [
    'Organization', 'OrganizationSetting',
    'Staff', 'User',
    'Customer', 'CustomerRewardAccount', 'LoyaltyTransaction',
    'ServiceItem', 'ServiceConsumable', 'GiftCardTemplate', 'PackageTemplate', 'PackageTemplateItem',
    'Product', 'InventoryTransaction',
    'Appointment', 'Invoice', 'InvoiceLineItem', 'InvoiceStockConsumption',
    'GiftCard', 'GiftCardLog',
    'CustomerPackage', 'CustomerPackageItem', 'CustomerPackageLog',
    'DailySale',
    'InvoiceCorrection',
]
