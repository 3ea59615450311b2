from sqlalchemy import Enum
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def enum_column_type(enum_cls, name: str) -> Enum:
    """Store enum values (not member names) so rows read like the API payloads"""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )
