import json
import logging
import os
import threading
from neuropath.config import config

log = logging.getLogger("neuropath.data")

class DataService:
    def __init__(self):
        self._locks = {}
        self._global_lock = threading.Lock()

    def _get_lock(self, path):
        with self._global_lock:
            if path not in self._locks:
                self._locks[path] = threading.RLock()
            return self._locks[path]

    def _load_json(self, path, default=None):
        lock = self._get_lock(path)
        with lock:
            try:
                if not os.path.exists(path):
                    return default
                with open(path, "r", encoding="utf-8") as f:
                    return json.load(f)
            except (OSError, ValueError) as e:
                log.error(f"Error loading {path}: {e}")
                return default

    def _save_json(self, path, data):
        lock = self._get_lock(path)
        with lock:
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
            tmp_path = path + ".tmp"
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, path)

    def _load_records(self, path):
        data = self._load_json(path, default=[])
        if isinstance(data, list):
            return [r for r in data if isinstance(r, dict)]
        return []

    def _append_record(self, path, record):
        # Read-modify-write under one lock so concurrent saves don't drop records.
        lock = self._get_lock(path)
        with lock:
            records = self._load_records(path)
            records.append({k: v for k, v in record.items() if v is not None})
            self._save_json(path, records)

    # Game sessions
    def load_game_sessions(self):
        return self._load_records(config.GAME_SESSIONS_PATH)

    def append_game_session(self, entry):
        self._append_record(config.GAME_SESSIONS_PATH, entry)

    # Activity sessions
    def load_activity_sessions(self):
        return self._load_records(config.ACTIVITY_SESSIONS_PATH)

    def append_activity_session(self, session):
        self._append_record(config.ACTIVITY_SESSIONS_PATH, session)

    # Users
    def load_users(self):
        if not os.path.exists(config.USERS_STORE_PATH):
            self._save_json(config.USERS_STORE_PATH, {"users": []})
            log.info(f"Created empty user store: {config.USERS_STORE_PATH}")
            return []
        data = self._load_json(config.USERS_STORE_PATH, default={})
        users = data.get("users") if isinstance(data, dict) else data
        if isinstance(users, list):
            return [u for u in users if isinstance(u, dict)]
        return []

data_service = DataService()
