import os
from dataclasses import dataclass


@dataclass
class Settings:
    # Runtime
    app_name: str = "taco-builder-api"
    env: str = os.getenv("ENV", "dev")
    log_level: str = os.getenv("LOG_LEVEL", "info")

    # Supabase
    supabase_url: str | None = os.getenv("SUPABASE_URL")
    supabase_service_role_key: str | None = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

    # Table names
    blueprint_table: str = os.getenv("TACO_BLUEPRINT_TABLE", "blueprint")
    log_table: str = os.getenv("TACO_LOG_TABLE", "case_log")


settings = Settings()
