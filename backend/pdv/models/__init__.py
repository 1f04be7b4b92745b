from .tenancy import Plan, Tenant, TENANT_STATUSES, DEFAULT_BUSINESS_TYPE, new_id
from .auth import User, ROLES, ADMIN_ROLES, ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_RESELLER, ROLE_USER
from .inventory import Product
from .customers import Customer
from .sales import Sale, SaleItem, SALE_STATUS_COMPLETED, PAYMENT_METHODS

__all__ = [
    'Plan', 'Tenant', 'TENANT_STATUSES', 'DEFAULT_BUSINESS_TYPE', 'new_id',
    'User', 'ROLES', 'ADMIN_ROLES', 'ROLE_SUPER_ADMIN', 'ROLE_ADMIN', 'ROLE_RESELLER', 'ROLE_USER',
    'Product',
    'Customer',
    'Sale', 'SaleItem', 'SALE_STATUS_COMPLETED', 'PAYMENT_METHODS',
]
