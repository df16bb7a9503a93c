
from pydantic import BaseModel
import os

from kaerr.ranking.encoder import MAX_PATH_LEN, MAX_PATHS

class Settings(BaseModel):
    scoring_model_path: str = os.getenv("KAERR_MODEL_PATH", "kaerr_model.onnx")
    scoring_provider: str = os.getenv("KAERR_SCORING_PROVIDER", "onnx")
    max_paths: int = int(os.getenv("KAERR_MAX_PATHS", MAX_PATHS))
    max_path_len: int = int(os.getenv("KAERR_MAX_PATH_LEN", MAX_PATH_LEN))
    warmup: bool = os.getenv("KAERR_WARMUP", "false").lower() == "true"
    path_source: str = os.getenv("KAERR_PATH_SOURCE", "static")
    paths_file: str = os.getenv("KAERR_PATHS_FILE", "")
    redis_url: str = os.getenv("REDIS_URL", "")
    require_api_key: bool = os.getenv("REQUIRE_API_KEY", "false").lower() == "true"
    api_keys_file: str = os.getenv("API_KEYS_FILE", "/app/server/data/api_keys.json")
    rank_rate_per_minute: int = int(os.getenv("LIMIT_RANK_PER_MINUTE", 120))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    def encoder_limits(self) -> tuple[int, int]: return self.max_paths, self.max_path_len

settings = Settings()
