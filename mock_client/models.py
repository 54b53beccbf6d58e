from enum import Enum
from pydantic import BaseModel

class AirPurity(Enum):
    FRESH_AIR = "Fresh Air"
    LOW = "Low Pollution"
    HIGH = "High Pollution"
    DANGEROUS = "Dangerous Pollution"

    @classmethod
    def from_value(cls, dust_concentration: float) -> "AirPurity":
        """Band a dust concentration reading into an air purity level."""
        if dust_concentration <= 50.0:
            return cls.FRESH_AIR
        if dust_concentration <= 100.0:
            return cls.LOW
        if dust_concentration <= 150.0:
            return cls.HIGH
        return cls.DANGEROUS

    def __str__(self) -> str:
        return self.value

class Reading(BaseModel):
    temperature: float
    humidity: float
    pressure: int
    dust_concentration: float
    air_purity: str
