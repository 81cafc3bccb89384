from pydantic import BaseModel, ConfigDict
from typing import Optional, Union


class EnglishBookResponse(BaseModel):
    id: str
    title: str
    author: str = ""
    ar: Optional[Union[float, str]] = None
    lexile: Optional[Union[float, str]] = None
    level: str = ""

    model_config = ConfigDict(
        from_attributes=True
    )


class KoreanBookResponse(BaseModel):
    id: str
    title: str
    author: str = ""
    publisher: str = ""

    model_config = ConfigDict(
        from_attributes=True
    )
