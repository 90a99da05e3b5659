"""Closed value sets shared by models, schemas and routers."""

import enum

from sqlalchemy import Enum as SAEnum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"
    OWNER = "owner"
    TENANT = "tenant"


class PropertyStatus(str, enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMING_SOON = "coming_soon"
    ARCHIVED = "archived"


class UnitType(str, enum.Enum):
    SINGLE_UNIT = "single_unit"
    MULTI_UNIT = "multi_unit"


class PropertyType(str, enum.Enum):
    OTHER = "other"
    APARTMENT = "apartment"
    SINGLE_FAMILY_HOME = "single_family_home"
    CONDO = "condo"
    CO_OP = "co-op"
    HOUSEBOAT = "houseboat"
    RANCH = "ranch"
    MOBILE_HOME = "mobile_home"
    CONTAINER_HOME = "container_home"
    SPLIT_LEVEL = "split_level"
    COTTAGE = "cottage"
    MEDITERRANEAN = "mediterranean"
    FARMHOUSE = "farmhouse"
    CABIN = "cabin"
    BUNGALOW = "bungalow"
    TOWNHOUSE = "townhouse"
    DUPLEX = "duplex"
    TRIPLEX = "triplex"
    FOURPLEX = "fourplex"
    LOFT_CONVERSION = "loft_conversion"
    PENTHOUSE = "penthouse"
    STUDIO = "studio"
    LOFT = "loft"
    VILLA = "villa"
    VICTORIAN = "victorian"
    COLONIAL = "colonial"
    TUDOR = "tudor"
    CRAFTSMAN = "craftsman"
    TINY_HOUSE = "tiny_house"
    MANUFACTURED_HOME = "manufactured_home"
    CAPE_COD = "cape_cod"
    MANSION = "mansion"


class TenantStatus(str, enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"
    INACTIVE = "inactive"


class InviteStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    ACCEPTED = "accepted"
    REVOKED = "revoked"
    EXPIRED = "expired"


def db_enum(enum_cls: type[enum.Enum], length: int = 32) -> SAEnum:
    """Store enum *values* (``co-op``, ``single_unit``) rather than member names."""
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
    )
