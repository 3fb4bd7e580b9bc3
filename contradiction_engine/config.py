"""
Configuration for the Contradiction Engine
==========================================

Two layers:

- ``AnalysisConfig``: the explicit, fully-enumerated options structure passed
  to ``analyze`` / ``compare_documents``. The core reads nothing else.
- ``Settings``: environment defaults used by the CLI and the API when a caller
  supplies no options.

Environment variables (prefix ``CONTRADICTION_``):
- SENSITIVITY_LEVEL: low|medium|high (default: medium)
- ENABLE_TRIPLE_VERIFICATION: true|false (default: true)
- GENERATE_FORENSIC_HASH: true|false (default: true)
- OUTPUT_FORMAT: json|text|markdown|html (default: json)
- NUMERIC_TOLERANCE: relative tolerance for numeric conflicts (default: 0.0)
- VERIFICATION_WORKERS: thread pool size for verification (default: 3)
- MAX_TEXT_CHARS: largest accepted document (default: 500000)
- LOG_LEVEL: logging level name (default: INFO)
- HOST, PORT: API bind address for ``run.py`` (default: 0.0.0.0:8000)
"""

from functools import lru_cache
from typing import Any, List, Mapping, Optional, Union

from pydantic import ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError
from .schemas import FrozenModel, OutputFormat, SensitivityLevel


class AnalysisConfig(FrozenModel):
    """Options recognised by the pipeline. Unknown keys are rejected."""
    model_config = ConfigDict(extra="forbid")

    sensitivity_level: SensitivityLevel = SensitivityLevel.MEDIUM
    enable_triple_verification: bool = True
    generate_forensic_hash: bool = True
    output_format: OutputFormat = OutputFormat.JSON
    numeric_tolerance: float = Field(default=0.0, ge=0.0, lt=1.0)
    verification_workers: int = Field(default=3, ge=1, le=32)


ConfigInput = Union[AnalysisConfig, Mapping[str, Any], None]


def build_config(options: ConfigInput = None, base: Optional[AnalysisConfig] = None) -> AnalysisConfig:
    """
    Validate analysis options.

    Args:
        options: ``AnalysisConfig``, a mapping with camelCase or snake_case
            keys, or None for defaults
        base: Defaults to merge the mapping onto (e.g. from ``Settings``)

    Returns:
        AnalysisConfig

    Raises:
        ConfigError: unknown option, unrecognised sensitivity level or output
            format, or out-of-range value
    """
    if isinstance(options, AnalysisConfig):
        return options

    if options is not None and not isinstance(options, Mapping):
        raise ConfigError(f"Options must be a mapping, got {type(options).__name__}")

    values = {}
    if base is not None:
        values.update(base.model_dump())
    if options:
        # Re-key onto field names so camelCase and snake_case can be mixed
        aliases = {field.alias: name for name, field in AnalysisConfig.model_fields.items()}
        for key, value in options.items():
            values[aliases.get(key, key)] = value

    try:
        return AnalysisConfig(**values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid analysis options: {problems}") from e


class Settings(BaseSettings):
    """Application settings from environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="CONTRADICTION_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Analysis defaults
    sensitivity_level: SensitivityLevel = SensitivityLevel.MEDIUM
    enable_triple_verification: bool = True
    generate_forensic_hash: bool = True
    output_format: OutputFormat = OutputFormat.JSON
    numeric_tolerance: float = 0.0
    verification_workers: int = 3

    # Input limits
    max_text_chars: int = 500_000

    # Service
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    service_version: str = "1.0.0"
    cors_allow_origins: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:8000"

    def default_analysis_config(self) -> AnalysisConfig:
        """Analysis options seeded from the environment"""
        return build_config({
            "sensitivity_level": self.sensitivity_level,
            "enable_triple_verification": self.enable_triple_verification,
            "generate_forensic_hash": self.generate_forensic_hash,
            "output_format": self.output_format,
            "numeric_tolerance": self.numeric_tolerance,
            "verification_workers": self.verification_workers,
        })

    def cors_origins(self) -> List[str]:
        origins: List[str] = []
        for item in self.cors_allow_origins.split(","):
            origin = item.strip().strip('"').strip("'").rstrip("/")
            if origin:
                origins.append(origin)
        return origins


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
