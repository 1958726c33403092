"""Closed role set and the capabilities each role grants."""

import enum


class UserRole(str, enum.Enum):
    INDIVIDUAL = "individual"
    BUYER = "buyer"
    SELLER = "seller"
    PRODUCT_PROVIDER = "product provider"
    ADMIN = "admin"
    SUPER_ADMIN = "super admin"
    MARKETING_TEAM = "marketing team"
    CUSTOMER_SUPPORT = "customer support"
    SUPPORT_TEAM = "support team"


class Capability(str, enum.Enum):
    SELL = "sell"
    MANAGE_ANY_PRODUCT = "manage_any_product"
    MANAGE_PROMOTIONS = "manage_promotions"
    MANAGE_ORDERS = "manage_orders"
    ADMINISTER = "administer"


ELEVATED_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPER_ADMIN})
SELLER_ROLES = frozenset({UserRole.SELLER, UserRole.PRODUCT_PROVIDER})

ROLE_CAPABILITIES: dict[UserRole, frozenset[Capability]] = {
    UserRole.INDIVIDUAL: frozenset(),
    UserRole.BUYER: frozenset(),
    UserRole.SELLER: frozenset({Capability.SELL}),
    UserRole.PRODUCT_PROVIDER: frozenset({Capability.SELL}),
    UserRole.ADMIN: frozenset(
        {
            Capability.SELL,
            Capability.MANAGE_ANY_PRODUCT,
            Capability.MANAGE_PROMOTIONS,
            Capability.MANAGE_ORDERS,
            Capability.ADMINISTER,
        }
    ),
    UserRole.SUPER_ADMIN: frozenset(
        {
            Capability.SELL,
            Capability.MANAGE_ANY_PRODUCT,
            Capability.MANAGE_PROMOTIONS,
            Capability.MANAGE_ORDERS,
            Capability.ADMINISTER,
        }
    ),
    UserRole.MARKETING_TEAM: frozenset(
        {Capability.SELL, Capability.MANAGE_ANY_PRODUCT, Capability.MANAGE_PROMOTIONS}
    ),
    UserRole.CUSTOMER_SUPPORT: frozenset(),
    UserRole.SUPPORT_TEAM: frozenset(),
}

# Roles that cannot be chosen at self-registration.
RESTRICTED_SIGNUP_ROLES = frozenset(
    {
        UserRole.ADMIN,
        UserRole.SUPER_ADMIN,
        UserRole.MARKETING_TEAM,
        UserRole.CUSTOMER_SUPPORT,
        UserRole.SUPPORT_TEAM,
    }
)


def has_capability(role: UserRole | str, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES.get(UserRole(role), frozenset())