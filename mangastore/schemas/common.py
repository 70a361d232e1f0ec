# mangastore/schemas/common.py
# Общие части схем: camelCase-база, денежный тип и конверт ответа API.
from decimal import Decimal
from typing import Annotated, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

# Decimal внутри, число в JSON
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Модели API: snake_case в Python, camelCase в JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ApiResponse(BaseModel, Generic[DataT]):
    """Единый конверт ответа: {success, message, data}."""

    success: bool = True
    message: str
    data: Optional[DataT] = None


class CountOut(BaseModel):
    count: int
