from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Upstream (TV listings API) record shapes. Unknown fields are ignored.


class CountryRecord(BaseModel):
    code: Optional[str] = None
    name: Optional[str] = None
    timezone: Optional[str] = None


class NetworkRecord(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    country: Optional[CountryRecord] = None


class ExternalsRecord(BaseModel):
    imdb: Optional[str] = None
    tvrage: Optional[int] = None
    thetvdb: Optional[int] = None


class RatingRecord(BaseModel):
    average: Optional[float] = None


class ShowRecord(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    language: Optional[str] = None
    genres: Optional[List[Optional[str]]] = None
    externals: Optional[ExternalsRecord] = None
    rating: Optional[RatingRecord] = None
    network: Optional[NetworkRecord] = None


# API request bodies.


class CountryBase(BaseModel):
    code: str = Field(min_length=1, pattern=r"\S")
    name: Optional[str] = None
    timezone: Optional[str] = None


class NetworkBase(BaseModel):
    id: Optional[int] = None
    name: str
    country: Optional[CountryBase] = None


class ExternalsBase(BaseModel):
    imdb: Optional[str] = None
    tvrage: Optional[int] = None
    thetvdb: Optional[int] = None


class RatingBase(BaseModel):
    average: Optional[float] = None


class ShowUpdate(BaseModel):
    name: str
    language: Optional[str] = None
    network: Optional[NetworkBase] = None
    externals: Optional[ExternalsBase] = None
    rating: Optional[RatingBase] = None
    genres: List[str] = []


class ShowCreate(ShowUpdate):
    id: int


# API responses, built from ORM rows.


class CountryResponse(CountryBase):
    model_config = ConfigDict(from_attributes=True)


class NetworkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: Optional[str] = None
    country: Optional[CountryResponse] = None


class ExternalsResponse(ExternalsBase):
    model_config = ConfigDict(from_attributes=True)


class RatingResponse(RatingBase):
    model_config = ConfigDict(from_attributes=True)


class ShowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    language: Optional[str] = None
    genres: List[str] = []
    externals: Optional[ExternalsResponse] = None
    rating: Optional[RatingResponse] = None
    network: Optional[NetworkResponse] = None

    @field_validator("genres", mode="before")
    @classmethod
    def genre_names(cls, value):
        return [getattr(genre, "name", genre) for genre in value or []]


class IngestionResponse(BaseModel):
    added: int
    skipped: int
