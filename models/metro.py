# models/metro.py
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MetroLine(BaseModel):
    """One rail line as returned by WMATA Rail.svc/jLines."""
    model_config = ConfigDict(populate_by_name=True)

    display_name: str = Field(..., alias="DisplayName")  # "Red", "Blue", ...
    line_code: str = Field(..., alias="LineCode")  # RD, BL, YL, OR, GR, SV
    start_station_code: str = Field(..., alias="StartStationCode")
    end_station_code: str = Field(..., alias="EndStationCode")
    internal_destination_1: str = Field("", alias="InternalDestination1")
    internal_destination_2: str = Field("", alias="InternalDestination2")


class TrainPrediction(BaseModel):
    """
    A predicted arrival from StationPrediction.svc/GetPrediction.

    `minutes` is a string: a number, "ARR" (arriving), "BRD" (boarding) or "".
    """
    model_config = ConfigDict(populate_by_name=True)

    car: Optional[str] = Field(None, alias="Car")
    destination: str = Field("", alias="Destination")
    destination_code: Optional[str] = Field(None, alias="DestinationCode")
    destination_name: str = Field("", alias="DestinationName")
    group: str = Field("", alias="Group")
    line: str = Field("", alias="Line")
    location_code: str = Field("", alias="LocationCode")
    location_name: str = Field("", alias="LocationName")
    minutes: str = Field("", alias="Min")


class LinesResponse(BaseModel):
    Lines: List[MetroLine]


class PredictionsResponse(BaseModel):
    Trains: List[TrainPrediction]
