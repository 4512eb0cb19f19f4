"""Tournament MongoDB Schema: a grouping of markets with display metadata."""

from datetime import datetime
from enum import Enum
from typing import List

from beanie import PydanticObjectId
from pydantic import Field
from pymongo import ASCENDING, IndexModel

from solspore.database.base import BaseDocument


class TournamentType(str, Enum):
    OFFICIAL = "official"
    CUSTOM = "custom"


class Tournament(BaseDocument):
    name: str
    image: str
    description: str
    start_date: datetime
    end_date: datetime
    game: str
    type: TournamentType = TournamentType.OFFICIAL
    markets: List[PydanticObjectId] = Field(default_factory=list)

    class Settings:
        name = "tournaments"
        use_state_management = True
        indexes = [
            IndexModel([("type", ASCENDING), ("start_date", ASCENDING)]),
        ]
