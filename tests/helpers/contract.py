from typing import Type, Any
from pydantic import BaseModel

def validate_response_schema(data: Any, schema: Type[BaseModel]):
    """Parse a camelCase response body back through its schema."""
    if isinstance(data, list):
        return [schema.model_validate(item) for item in data]
    return schema.model_validate(data)
