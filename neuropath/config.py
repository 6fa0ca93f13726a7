import os
import configparser

class Config:
    def __init__(self, root_path):
        self.root_path = root_path
        self._cfg = configparser.ConfigParser()
        self._cfg.read(os.path.join(root_path, "config.ini"), encoding="utf-8")

        # Flask Config
        self.JSON_AS_ASCII = False
        self.JSON_SORT_KEYS = False
        self.MAX_CONTENT_LENGTH = 2 * 1024 * 1024
        self.CORS_ORIGINS = self._split_list(os.environ.get("CORS_ORIGINS") or self._cfg.get("server", "cors_origins", fallback="*"))
        self.LOG_DIR = os.environ.get("LOG_DIR") or self._cfg.get("server", "log_dir", fallback=os.path.join(root_path, "logs"))

        # Data Store Paths
        self.DATA_DIR = os.environ.get("DATA_DIR") or self._cfg.get("storage", "data_dir", fallback=os.path.join(root_path, "GameData"))
        self.GAME_SESSIONS_PATH = os.path.join(self.DATA_DIR, "game_sessions.json")
        self.ACTIVITY_SESSIONS_PATH = os.path.join(self.DATA_DIR, "activity_sessions.json")
        self.USERS_STORE_PATH = os.path.join(self.DATA_DIR, "users.json")

        # Local LLM (LM Studio, OpenAI-compatible)
        self.LLM_BASE_URL = os.environ.get("LLM_BASE_URL") or self._cfg.get("llm", "base_url", fallback="http://localhost:1234/v1")
        self.LLM_API_KEY = os.environ.get("LLM_API_KEY") or self._cfg.get("llm", "api_key", fallback="lm-studio")
        self.LLM_MODEL = self._normalize_model_id(os.environ.get("LLM_MODEL") or self._cfg.get("llm", "model", fallback="Phi-4-mini"))
        self.LLM_REASONING_MODEL = self._normalize_model_id(os.environ.get("LLM_REASONING_MODEL") or self._cfg.get("llm", "reasoning_model", fallback="microsoft/phi-4-mini-reasoning"))
        self.LLM_MAX_WORKERS = int(os.environ.get("LLM_MAX_WORKERS") or self._cfg.get("llm", "max_workers", fallback="3"))
        self.LLM_HEALTHCHECK_TIMEOUT = float(os.environ.get("LLM_HEALTHCHECK_TIMEOUT") or self._cfg.get("llm", "healthcheck_timeout", fallback="5"))

        # JWT
        self.JWT_SECRET = os.environ.get("JWT_SECRET") or self._cfg.get("jwt", "secret", fallback="neuropath-development-secret-change-me!!")
        self.JWT_ISSUER = os.environ.get("JWT_ISSUER") or self._cfg.get("jwt", "issuer", fallback="NeuroPathApp")
        self.JWT_AUDIENCE = os.environ.get("JWT_AUDIENCE") or self._cfg.get("jwt", "audience", fallback="NeuroPathAppUsers")
        self.JWT_EXPIRATION_DAYS = int(os.environ.get("JWT_EXPIRATION_DAYS") or self._cfg.get("jwt", "expiration_days", fallback="7"))

    def _normalize_model_id(self, mid):
        return "".join(str(mid or "").split())

    def _split_list(self, raw):
        items = [p.strip() for p in str(raw or "").split(",")]
        items = [p for p in items if p]
        if not items or items == ["*"]:
            return "*"
        return items

config = Config(os.getcwd())
