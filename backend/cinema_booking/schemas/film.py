"""
Pydantic schemas for the film catalog and schedule listings.
"""

from typing import Optional

from pydantic import BaseModel, Field


class FilmResponse(BaseModel):
    id: str
    rating: Optional[float] = None
    director: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    title: Optional[str] = None
    about: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    cover: Optional[str] = None


class FilmListResponse(BaseModel):
    total: int
    items: list[FilmResponse]


class ScheduleItemResponse(BaseModel):
    id: str
    daytime: str
    hall: str
    rows: int
    seats: int
    price: int
    taken: list[str] = Field(default_factory=list)


class ScheduleResponse(BaseModel):
    total: int
    items: list[ScheduleItemResponse]
