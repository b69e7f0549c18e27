from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive values; they were written as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Every timestamp leaves the API as UTC with an explicit offset, whichever
# backend it was read from.
UTCDateTime = Annotated[datetime, AfterValidator(as_utc)]


class CamelModel(BaseModel):
    """
    The browser client speaks camelCase JSON (``waterAmount``, ``driverId``);
    Python code keeps snake_case attribute names. Both spellings are accepted
    on input, camelCase is emitted on output.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
