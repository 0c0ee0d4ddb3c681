"""Base model for request and response bodies.

Field names are snake_case in Python and camelCase on the wire, which is
what the web client sends and expects.  Inputs accept either spelling.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
