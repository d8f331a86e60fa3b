from dotenv import load_dotenv
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from a local .env file if present
load_dotenv()


class Settings(BaseSettings):
    openai_api_key: str = Field(..., validation_alias="OPENAI_API_KEY")
    openai_timeout: float = Field(default=120.0, validation_alias="OPENAI_TIMEOUT")

    # Faster model for one-shot notes, more capable one for brainstorming.
    note_model: str = Field(default="gpt-4.1-mini", validation_alias="NOTE_MODEL")
    ideas_model: str = Field(default="gpt-4.1", validation_alias="IDEAS_MODEL")

    host: str = Field(default="127.0.0.1", validation_alias="HOST")
    port: int = Field(default=8000, validation_alias="PORT")
    output_dir: str = Field(default="./output", validation_alias="OUTPUT_DIR")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    # Oldest idle workspaces are dropped once the store holds this many.
    max_workspaces: int = Field(default=200, ge=1, validation_alias="MAX_WORKSPACES")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def load_settings() -> Settings:
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        missing_keys = [err["loc"][0] for err in exc.errors()]
        raise RuntimeError(f"Missing required environment variables: {missing_keys}") from exc


settings = load_settings()

if not settings.openai_api_key:
    raise RuntimeError("OPENAI_API_KEY is required for the note assistant to run.")
