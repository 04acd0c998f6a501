# vve_governance/db_types.py

from sqlalchemy import JSON as SA_JSON, Numeric, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import Enum as SA_Enum

# Audit details: JSONB on PostgreSQL, generic JSON elsewhere
JSONType = SA_JSON().with_variant(JSONB, "postgresql")

# Primary and foreign keys: native UUID on PostgreSQL, CHAR(32) elsewhere
UUIDType = Uuid(as_uuid=True)

# Unit fractions and the ballot weights copied from them
FractionType = Numeric(12, 6, asdecimal=True)

EnumType = SA_Enum

__all__ = ["JSONType", "UUIDType", "FractionType", "EnumType"]
