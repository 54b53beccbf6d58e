from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class BaseConfig(BaseSettings):
    collector_url: str = "http://localhost:4000/api/readings/add"
    request_timeout: float = Field(default=10.0, gt=0, allow_inf_nan=False)
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
