from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # App
    app_name: str = "Loanbook"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    # Replay policy: allow EMI payments smaller than the month's interest
    # (the balance grows by the shortfall instead of the payment being rejected)
    allow_negative_amortization: bool = False


settings = Settings()
