from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Any, Dict

class SchemaBase(BaseModel):
    """
    Base class for all schemas in the content generator.
    Enforces strict fields and provides safe serialization.

    Field names are snake_case in Python and camelCase on the wire
    (clientId, sitemapUrls, featuredImageBase64), matching stored records.
    """

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
