"""Application settings loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration from environment variables."""

    auth_username: str = ""
    auth_password: str = ""
    default_tax_year: str = "2024-2025"
    default_occupation_code: str = "default"
    benchmarks_file: str = "benchmarks.yaml"
    # Count the threshold dollar inside a bracket (legacy schedule formula)
    bracket_boundary_offset: bool = True

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
