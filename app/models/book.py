from dataclasses import dataclass
from typing import Optional, Union


@dataclass
class EnglishBook:
    id: str
    title: str
    author: str = ""
    ar: Optional[Union[float, str]] = None
    lexile: Optional[Union[float, str]] = None
    level: str = ""


@dataclass
class KoreanBook:
    id: str
    title: str
    author: str = ""
    publisher: str = ""
