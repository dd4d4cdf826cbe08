"""Import all models so SQLModel.metadata picks them up."""

from fintrack.models.contact import (
    Contact,
    ContactCategory,
    ContactCategoryCreate,
    ContactCategoryRead,
    ContactCreate,
    ContactRead,
    ContactType,
    ContactUpdate,
)
from fintrack.models.currency import (
    Currency,
    CurrencyCreate,
    CurrencyRead,
    CurrencyType,
    CurrencyUpdate,
)
from fintrack.models.entity import Entity, EntityCreate, EntityRead, EntityStatus, EntityType, EntityUpdate
from fintrack.models.entity_member import (
    EntityMember,
    EntityMemberCreate,
    EntityMemberRead,
    Permission,
)
from fintrack.models.tenant import TenantNamespace
from fintrack.models.user import User, UserCreate, UserRead

__all__ = [
    "Contact",
    "ContactCategory",
    "ContactCategoryCreate",
    "ContactCategoryRead",
    "ContactCreate",
    "ContactRead",
    "ContactType",
    "ContactUpdate",
    "Currency",
    "CurrencyCreate",
    "CurrencyRead",
    "CurrencyType",
    "CurrencyUpdate",
    "Entity",
    "EntityCreate",
    "EntityMember",
    "EntityMemberCreate",
    "EntityMemberRead",
    "EntityRead",
    "EntityStatus",
    "EntityType",
    "EntityUpdate",
    "Permission",
    "TenantNamespace",
    "User",
    "UserCreate",
    "UserRead",
]
