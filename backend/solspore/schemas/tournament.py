"""Tournament Pydantic schemas."""

from datetime import datetime
from typing import List, Optional

from beanie import PydanticObjectId
from pydantic import Field, model_validator

from solspore.models import TournamentType
from solspore.schemas.common import BaseSchema, TimestampSchema
from solspore.schemas.market import MarketResponse


class TournamentCreate(BaseSchema):
    """Tournament creation schema."""

    name: str = Field(min_length=1)
    image: str = Field(min_length=1)
    description: str = Field(min_length=1)
    start_date: datetime
    end_date: datetime
    game: str = Field(min_length=1)
    type: TournamentType = TournamentType.OFFICIAL

    @model_validator(mode="after")
    def check_dates(self) -> "TournamentCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class TournamentUpdate(BaseSchema):
    """Partial tournament update."""

    name: Optional[str] = Field(default=None, min_length=1)
    image: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    game: Optional[str] = None
    type: Optional[TournamentType] = None


class TournamentResponse(TimestampSchema):
    """Tournament response schema."""

    id: PydanticObjectId
    name: str
    image: str
    description: str
    start_date: datetime
    end_date: datetime
    game: str
    type: TournamentType
    markets: List[PydanticObjectId]


class TournamentDetailResponse(TournamentResponse):
    """Tournament with its markets expanded."""

    markets: List[MarketResponse]  # type: ignore[assignment]
