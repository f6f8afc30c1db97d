from __future__ import annotations

from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict


class BaseSchema(BaseModel):
    # Wire format is camelCase; Python code keeps snake_case field names.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
