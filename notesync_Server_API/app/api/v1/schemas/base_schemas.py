# app/api/v1/schemas/base_schemas.py
#
# Imports
from datetime import datetime
from typing import Annotated, Optional
# 3rd-party Libraries
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel
#
# Local Imports
from notesync_Server_API.app.core.DB_Management.Entity_Models import ensure_utc, format_timestamp
#
#######################################################################################################################
#
# Schemas:

# ISO-8601 in, fixed-width UTC 'Z' string out. Naive input is taken as UTC.
Timestamp = Annotated[datetime, AfterValidator(ensure_utc), PlainSerializer(format_timestamp, return_type=str)]


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python; accepts either on input."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class EntityResponseBase(CamelModel):
    id: str = Field(..., description="Entity identifier")
    owner_user_id: str = Field(..., description="Owning user")
    created_at: Timestamp = Field(..., description="Creation time (UTC)")
    updated_at: Timestamp = Field(..., description="Last modification time (UTC)")
    deleted_at: Optional[Timestamp] = Field(None, description="Soft-delete time (UTC); null while active")


class DetailResponse(BaseModel):
    detail: str
