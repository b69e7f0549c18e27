import enum
from datetime import datetime, timezone
from typing import Any, List, Type

from sqlalchemy import Enum
from sqlalchemy.orm import as_declarative


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def enum_column(enum_cls: Type[enum.Enum]) -> Enum:
    """Store enum *values* ("in_transit"), not member names, as plain VARCHAR."""

    def values(members: Type[enum.Enum]) -> List[str]:
        return [member.value for member in members]

    return Enum(
        enum_cls,
        values_callable=values,
        native_enum=False,
        validate_strings=True,
        length=32,
    )


@as_declarative()
class Base:
    id: Any
    __name__: str
