"""Base model shared by the rules aggregates."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RulesModel(BaseModel):
    """Pydantic base that serializes with the stored camelCase field names.

    Python code uses snake_case attributes; ``model_dump(by_alias=True)``
    produces the shape persisted campaigns already use.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )
