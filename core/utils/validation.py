# core/utils/validation.py
from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from core.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def missing_fields(data: Dict[str, Any], required_fields: List[str]) -> List[str]:
    """Return the required fields that are absent or blank, in declaration order."""
    missing = []
    for field in required_fields:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(field)
    return missing

def parse_payload(schema: Type[ModelT], data: Any, label: str = "Input") -> ModelT:
    """Validate a raw payload against a pydantic schema, reporting failures as ValidationError."""
    try:
        return schema.model_validate(data if data is not None else {})
    except PydanticValidationError as e:
        fields = [".".join(str(part) for part in error["loc"]) for error in e.errors()]
        messages = "; ".join(f"{field}: {error['msg']}" for field, error in zip(fields, e.errors()))
        raise ValidationError(f"Invalid {label.lower()}: {messages}", fields=fields)
