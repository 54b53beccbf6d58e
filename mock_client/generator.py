import math
import random
from .models import AirPurity, Reading

def _truncate(value: float) -> float:
    # Keep two decimals without rounding up
    return math.trunc(value * 100.0) / 100.0

def random_temperature(rng: random.Random) -> float:
    return _truncate(rng.uniform(15.0, 35.0))

def random_humidity(rng: random.Random) -> float:
    return _truncate(rng.uniform(0.0, 100.0))

def random_pressure(rng: random.Random) -> int:
    return rng.randint(900, 1100)

def random_dust_concentration(rng: random.Random) -> float:
    return _truncate(rng.uniform(0.0, 1000.0))

def generate_reading(rng: random.Random) -> Reading:
    """Fabricate one sensor reading from the given random source"""
    dust_concentration = random_dust_concentration(rng)
    return Reading(
        temperature=random_temperature(rng),
        humidity=random_humidity(rng),
        pressure=random_pressure(rng),
        dust_concentration=dust_concentration,
        air_purity=str(AirPurity.from_value(dust_concentration)),
    )

def encode_reading(reading: Reading) -> bytes:
    return reading.model_dump_json().encode("utf-8")
