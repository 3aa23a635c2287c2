"""基础模型 / Base Models

所有数据模型的 pydantic 基类。
Pydantic base class shared by every data model.
"""

from pydantic import BaseModel as PydanticBaseModel
from pydantic import ConfigDict, Field

__all__ = ["BaseModel", "Field"]


class BaseModel(PydanticBaseModel):
    """openapi_toolset 模型基类 / Base model for openapi_toolset"""

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=False,
        arbitrary_types_allowed=True,
    )
