"""
Computation configuration — instance, retention, recommendation and wait settings.

ComputationConfig defaults are defined here. Values may come from a JSON file
(nested "model" / "recommend" / "generations" / "test" sections are flattened by
from_dict()) or from COMPUTATION_* environment variables, optionally loaded
from the project root .env file.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, model_validator

_ROOT_ENV = Path(__file__).resolve().parent.parent / ".env"


class ComputationConfig(BaseModel):
    """Configuration for one generation runner."""

    # -------------------------------------------------------------------------
    # Instance / store
    # -------------------------------------------------------------------------

    # Instance root within the store. All generations live under <instance_dir>/.
    instance_dir: str = "default"

    # Root directory of the local filesystem store.
    store_root: str = "store"

    # -------------------------------------------------------------------------
    # Generations
    # -------------------------------------------------------------------------

    # Generations beyond this count are deleted oldest-first before each run.
    generations_keep: int = 10

    # Seconds a generation's inbound area must be idle before the previous one runs.
    generation_wait_seconds: float = 240.0

    # Seconds between polls while an upload is in progress.
    upload_poll_seconds: float = 60.0

    # Skip all waiting (integration tests / deterministic runs).
    skip_wait: bool = False

    # Seconds between scheduled lifecycle invocations (CLI / status server loop).
    run_interval_seconds: float = 60.0

    # -------------------------------------------------------------------------
    # Recommendations
    # -------------------------------------------------------------------------

    # Compute recommendations for every user after the model is built.
    recommend_compute: bool = True

    # Number of items kept per user.
    recommend_how_many: int = 10

    # Restrict recommendations to the users listed in recommend_users_file.
    recommend_specific_users: bool = False
    recommend_users_file: Optional[str] = None

    # Worker threads; None means one per available CPU.
    recommend_workers: Optional[int] = None

    # Field delimiter in recommendation shards.
    recommend_delimiter: str = ","

    # -------------------------------------------------------------------------
    # Status server
    # -------------------------------------------------------------------------

    status_host: str = "0.0.0.0"
    status_port: int = 8090

    @model_validator(mode="after")
    def check_values(self):
        if self.generations_keep < 1:
            raise ValueError(f"generations_keep must be >= 1, got {self.generations_keep}")
        if self.recommend_how_many < 1:
            raise ValueError(f"recommend_how_many must be >= 1, got {self.recommend_how_many}")
        if self.recommend_workers is not None and self.recommend_workers < 1:
            raise ValueError(f"recommend_workers must be >= 1, got {self.recommend_workers}")
        if len(self.recommend_delimiter) != 1:
            raise ValueError("recommend_delimiter must be a single character")
        if self.recommend_specific_users and not self.recommend_users_file:
            raise ValueError("recommend_specific_users requires recommend_users_file")
        return self

    @property
    def stop_after_run(self) -> bool:
        """True when a one-shot run for specific users should end the process."""
        return self.recommend_specific_users and self.recommend_compute

    def render_concise(self) -> str:
        """Compact JSON rendering stored alongside each generation."""
        return self.model_dump_json()

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "ComputationConfig":
        """Create config from dictionary (e.g., loaded from JSON)."""
        flat: Dict[str, Any] = {}
        for key, value in config_dict.items():
            if not isinstance(value, dict):
                flat[key] = value
        if "model" in config_dict:
            model = config_dict["model"]
            if "instance-dir" in model:
                flat["instance_dir"] = model["instance-dir"]
            for k, v in model.items():
                if isinstance(v, dict) and k == "recommend":
                    flat.update(_prefixed("recommend", v))
                elif isinstance(v, dict) and k == "generations":
                    if "keep" in v:
                        flat["generations_keep"] = v["keep"]
        if "recommend" in config_dict:
            flat.update(_prefixed("recommend", config_dict["recommend"]))
        if "generations" in config_dict:
            gen = config_dict["generations"]
            if "keep" in gen:
                flat["generations_keep"] = gen["keep"]
            if "wait_seconds" in gen:
                flat["generation_wait_seconds"] = gen["wait_seconds"]
            if "poll_seconds" in gen:
                flat["upload_poll_seconds"] = gen["poll_seconds"]
        if "test" in config_dict:
            if "integration" in config_dict["test"]:
                flat["skip_wait"] = config_dict["test"]["integration"]
        allowed = set(cls.model_fields)
        filtered = {k: v for k, v in flat.items() if k in allowed}
        return cls.model_validate(filtered)

    @classmethod
    def from_env(cls) -> "ComputationConfig":
        """Load configuration from COMPUTATION_* environment variables."""
        if _ROOT_ENV.exists():
            load_dotenv(_ROOT_ENV)
        values: Dict[str, Any] = {}
        for name in cls.model_fields:
            raw = os.getenv(f"COMPUTATION_{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        return cls.model_validate(values)


def _prefixed(prefix: str, section: Dict[str, Any]) -> Dict[str, Any]:
    """Map a nested section like {"how-many": 5} to {"<prefix>_how_many": 5}."""
    aliases = {"specificUsers": "specific_users", "usersFile": "users_file"}
    out = {}
    for key, value in section.items():
        name = aliases.get(key, key.replace("-", "_"))
        out[f"{prefix}_{name}"] = value
    return out


def load_config(path: Path) -> ComputationConfig:
    """Read a JSON config file."""
    with open(path) as f:
        return ComputationConfig.from_dict(json.load(f))


# Global config instance
_config: Optional[ComputationConfig] = None


def get_config() -> ComputationConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        path = os.getenv("COMPUTATION_CONFIG_FILE")
        _config = load_config(Path(path)) if path else ComputationConfig.from_env()
    return _config


def reload_config() -> ComputationConfig:
    """Reload configuration from environment."""
    global _config
    _config = None
    return get_config()
