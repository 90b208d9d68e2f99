"""Runtime settings for the Wardrobe Stylist service."""

from dataclasses import asdict, dataclass, field
from pathlib import Path
import os
from typing import Callable, Dict, List, Optional, TypeVar

DEFAULT_GEMINI_MODELS = ["gemini-2.5-flash", "gemini-2.0-flash", "gemini-2.0-flash-lite"]
DEFAULT_COOLDOWN_SECONDS = 30.0
DEFAULT_CONFIG_DIR = "config/environments"

T = TypeVar("T")


@dataclass
class StylistConfig:
    """Settings for the provider chain, request gate and saved outfit store.

    ``from_env`` layers upper-cased environment variables over an optional
    per-environment file, so the Gemini key can come from the runtime while
    model lists and paths stay in version control.
    """

    gemini_api_key: Optional[str] = None
    gemini_models: List[str] = field(default_factory=lambda: list(DEFAULT_GEMINI_MODELS))
    cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS
    generation_temperature: float = 0.7
    generation_top_p: float = 0.9
    generation_top_k: int = 40
    max_output_tokens: int = 4096
    image_fetch_timeout: float = 10.0
    saved_outfits_db_path: Optional[str] = None
    environment: str | None = None

    def __post_init__(self) -> None:
        if not self.gemini_models:
            raise ValueError("at least one Gemini model must be configured")
        if self.cooldown_seconds < 0:
            raise ValueError("cooldown_seconds must not be negative")

    @classmethod
    def from_env(cls) -> "StylistConfig":
        """Read ``config/environments/<APP_ENV>.yaml`` (or ``APP_CONFIG_PATH``) under the environment."""

        env_name = os.getenv("APP_ENV")
        path = cls._config_file(env_name)
        file_values = cls._load_yaml_config(path) if path and path.exists() else {}

        def lookup(key: str, convert: Callable[[str], T], default: T) -> T:
            raw = os.getenv(key.upper(), file_values.get(key))
            if raw is None or raw == "":
                return default
            try:
                return convert(raw)
            except ValueError as exc:
                raise ValueError(f"invalid value for {key}: {raw!r}") from exc

        api_key = lookup("gemini_api_key", str, None) or lookup("google_api_key", str, None)
        return cls(
            gemini_api_key=api_key,
            gemini_models=lookup("gemini_models", cls._parse_models, []) or list(DEFAULT_GEMINI_MODELS),
            cooldown_seconds=lookup("cooldown_seconds", float, DEFAULT_COOLDOWN_SECONDS),
            generation_temperature=lookup("generation_temperature", float, 0.7),
            generation_top_p=lookup("generation_top_p", float, 0.9),
            generation_top_k=lookup("generation_top_k", int, 40),
            max_output_tokens=lookup("max_output_tokens", int, 4096),
            image_fetch_timeout=lookup("image_fetch_timeout", float, 10.0),
            saved_outfits_db_path=lookup("saved_outfits_db_path", str, None),
            environment=env_name,
        )

    def to_log_dict(self) -> Dict[str, object]:
        values = asdict(self)
        values["gemini_api_key"] = "set" if self.gemini_api_key else None
        return values

    @staticmethod
    def _config_file(env_name: Optional[str]) -> Optional[Path]:
        explicit = os.getenv("APP_CONFIG_PATH")
        if explicit:
            return Path(explicit)
        if env_name:
            return Path(os.getenv("STYLIST_CONFIG_DIR", DEFAULT_CONFIG_DIR)) / f"{env_name}.yaml"
        return None

    @staticmethod
    def _parse_models(raw: str) -> List[str]:
        return [model.strip() for model in raw.split(",") if model.strip()]

    @staticmethod
    def _load_yaml_config(path: Path) -> Dict[str, str]:
        """Read flat ``key: value`` pairs; comments and blank lines are skipped."""

        values: Dict[str, str] = {}
        for line in path.read_text().splitlines():
            key, separator, raw_value = line.strip().partition(":")
            if not separator or key.startswith("#"):
                continue
            value = raw_value.strip()
            if value[:1] in {"'", '"'} and value[-1:] == value[:1] and len(value) > 1:
                value = value[1:-1]
            elif " #" in value:
                value = value.split(" #", 1)[0].rstrip()
            values[key.strip()] = value
        return values
