from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# Known type tags. Unknown tags are not rejected; they pass through the normalizer unchanged.
FIELD_TYPES = ("String", "Number", "Boolean", "Date", "Array", "Object", "ObjectId")

ErrorKind = Literal["precondition", "configuration", "backend", "parse", "validation", "execution"]


class SchemaField(BaseModel):
    name: str = ""
    type: str = "String"
    required: bool = False
    description: Optional[str] = None
    children: Optional[List[SchemaField]] = None


class DemoMQLRequest(BaseModel):
    query: str = ""


class CustomMQLRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str = ""
    schema_text: Optional[str] = Field(default=None, alias="schema")
    fields: Optional[List[SchemaField]] = None


class NormalizeSchemaRequest(BaseModel):
    fields: List[SchemaField]


class MQLGenerationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    enhanced_query: Optional[str] = None
    mql_query: Optional[str] = None
    # None means "not executed" (custom schema mode)
    results: Optional[List[Any]] = None
    schema_text: Optional[str] = Field(default=None, alias="schema")
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None


class SampleDataResponse(BaseModel):
    success: bool
    data: Optional[List[Any]] = None
    error: Optional[str] = None


class SchemaTemplateOut(BaseModel):
    name: str
    description: str
    schema_text: str = Field(alias="schema")
    sample_query: str

    model_config = ConfigDict(populate_by_name=True)
