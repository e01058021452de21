from pathlib import Path

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    near_api_base: str = "https://cloud-api.near.ai/v1"
    near_api_key: SecretStr = SecretStr("")
    # Attestation fetch has no upstream timeout guarantee; bound it locally.
    attestation_timeout_seconds: float = 5.0
    completion_timeout_seconds: float = 60.0
    report_dir: Path = Path("./reports")
    log_level: str = "INFO"

    def api_key(self) -> str:  # helper accessor
        return self.near_api_key.get_secret_value()


settings = Settings()
