from pydantic import BaseModel, ConfigDict
from typing import Optional, List, Union


class BookSelection(BaseModel):
    """学生在表单里选择的书，id 为空时按书名查找"""
    id: Optional[str] = None
    title: Optional[str] = None
    ar: Optional[Union[float, str]] = None
    lexile: Optional[Union[float, str]] = None


class ProgressRow(BaseModel):
    id: str
    studentId: str
    date: str
    vocabScore: Union[float, int, str]
    grammarScore: Union[float, int, str]
    readingResult: str
    englishReading: str
    bookTitle: str
    feeling: str


class HomeworkRow(BaseModel):
    pageId: str
    studentId: str
    date: str
    teachers: List[str]
    completionRate: int
    grammarHomework: str
    vocabCards: str
    readingCards: str
    summary: str
    readingHomework: str
    diary: str

    model_config = ConfigDict(
        from_attributes=True
    )
