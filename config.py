
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Application Settings
    PROJECT_NAME: str = "Scene Sync Service"
    DEBUG: bool = True

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./scene_sync.db"

    # API Settings
    API_V1_STR: str = "/api/v1"
    # Comma-separated list of allowed origins, "*" for any
    CORS_ORIGINS: str = "*"

    LOG_LEVEL: str = "INFO"

    # Upper bound for a single state-store operation; exceeding it counts as a persistence failure
    STORE_TIMEOUT_SECONDS: float = 5.0

    # Model asset uploads
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_BYTES: int = 50 * 1024 * 1024
    ALLOWED_MODEL_EXTENSIONS: str = ".glb,.gltf,.obj,.fbx,.stl"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def allowed_model_extensions(self) -> set[str]:
        return {e.strip().lower() for e in self.ALLOWED_MODEL_EXTENSIONS.split(",") if e.strip()}

    def _post_init(self):
        if self.STORE_TIMEOUT_SECONDS <= 0:
            raise ValueError("STORE_TIMEOUT_SECONDS must be positive")
        if self.MAX_UPLOAD_BYTES <= 0:
            raise ValueError("MAX_UPLOAD_BYTES must be positive")

settings = Settings()
settings._post_init()
