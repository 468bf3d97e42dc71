import math
from typing import Annotated, Any, List
from pydantic import BaseModel, BeforeValidator, ConfigDict, GetCoreSchemaHandler, GetJsonSchemaHandler
from pydantic.alias_generators import to_camel
from pydantic.json_schema import JsonSchemaValue
from pydantic_core import core_schema
from bson import ObjectId


class PyObjectId(ObjectId):

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:

        def validate_object_id(v: Any) -> ObjectId:
            if not ObjectId.is_valid(v):
                raise ValueError("Invalid objectid")
            return ObjectId(v)

        from_input_schema = core_schema.no_info_plain_validator_function(validate_object_id)

        return core_schema.json_or_python_schema(
            json_schema=from_input_schema,
            python_schema=core_schema.union_schema([
                core_schema.is_instance_schema(ObjectId),
                from_input_schema,
            ]),
            serialization=core_schema.to_string_ser_schema()
        )

    @classmethod
    def __get_pydantic_json_schema__(
        cls, core_schema: core_schema.CoreSchema, handler: GetJsonSchemaHandler
    ) -> JsonSchemaValue:
        return {'type': 'string'}


def _normalize_tags(value: Any) -> Any:
    if isinstance(value, list):
        return [t.strip().lower() for t in value if isinstance(t, str) and t.strip()]
    return value


# Lowercased, trimmed, blanks dropped
Tags = Annotated[List[str], BeforeValidator(_normalize_tags)]


# Stored documents and API payloads use camelCase keys; Python code uses snake_case
class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_entries: int


def paginate(page: int, limit: int, total: int) -> Pagination:
    return Pagination(
        current_page=page,
        total_pages=math.ceil(total / limit),
        total_entries=total,
    )
