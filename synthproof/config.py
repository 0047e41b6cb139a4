"""
Configuration Management Module

Handles loading, validation, and merging of configuration files
with support for presets and user-defined overrides.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional, Union
from dataclasses import dataclass, field, asdict, fields
from copy import deepcopy
import logging

logger = logging.getLogger(__name__)

PRESETS_DIR = Path(__file__).parent / "presets"


@dataclass
class GenerationConfig:
    """Configuration for generation requests"""
    default_rows: int = 100
    max_rows: int = 100000
    seed: Optional[int] = None
    default_output_format: str = "csv"
    default_quality_mode: str = "balanced"
    output_formats: List[str] = field(default_factory=lambda: ["csv", "json"])


@dataclass
class QualityConfig:
    """Quality score derivation per quality mode"""
    base_scores: Dict[str, int] = field(
        default_factory=lambda: {"fast": 75, "balanced": 88, "high": 95}
    )
    default_score: int = 88
    jitter: int = 5  # score = base + uniform integer in [0, jitter)


@dataclass
class ClassifierConfig:
    """Keyword rules for column classification (first match wins)"""
    sensitive_keywords: List[str] = field(
        default_factory=lambda: ["name", "email", "phone", "ssn", "address"]
    )
    numeric_keywords: List[str] = field(
        default_factory=lambda: ["id", "age", "salary", "amount", "price", "count", "number"]
    )


@dataclass
class SynthesisConfig:
    """Configuration for synthetic value generation"""
    email_domain: str = "aleo"  # synth_{i}@privacy.<email_domain>
    age_range: List[int] = field(default_factory=lambda: [20, 70])
    salary_range: List[int] = field(default_factory=lambda: [30000, 150000])
    numeric_range: List[int] = field(default_factory=lambda: [0, 1000])


@dataclass
class PrivacyConfig:
    """Defaults for the privacy transform"""
    hide_sensitive: bool = True
    privacy_safe_ranges: bool = False
    range_width: int = 10
    audit: bool = True


@dataclass
class CommitmentConfig:
    """Commitment and proof derivation"""
    namespace: str = "aleo"
    digest: str = "rolling"  # rolling, sha256
    commitment_width: int = 32
    proof_width: int = 48
    proof_prefix: str = "proof1"


@dataclass
class NetworkConfig:
    """Ledger metadata stamped on transactions and receipts"""
    app_name: str = "AleoSynth"
    network: str = "testnet"
    program_id: str = "aleosynth.aleo"
    tx_prefix: str = "at1"
    explorer_url: str = "https://explorer.aleo.org/transaction/{tx_id}"


@dataclass
class StorageConfig:
    """Content store selection"""
    backend: str = "memory"  # memory, json
    runtime_dir: str = ".runtime"


@dataclass
class Config:
    """Main configuration class combining all sub-configurations"""
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    quality: QualityConfig = field(default_factory=QualityConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    synthesis: SynthesisConfig = field(default_factory=SynthesisConfig)
    privacy: PrivacyConfig = field(default_factory=PrivacyConfig)
    commitment: CommitmentConfig = field(default_factory=CommitmentConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return asdict(self)

    def merge(self, other: 'Config') -> 'Config':
        """Merge another configuration into this one (other takes precedence)"""
        merged = deepcopy(self)

        for section in SECTIONS:
            other_config = getattr(other, section)
            merged_config = getattr(merged, section)

            # Update non-None values
            for field_name, field_value in asdict(other_config).items():
                if field_value is not None:
                    setattr(merged_config, field_name, field_value)

        return merged

    def update(self, overrides: Dict[str, Any]) -> 'Config':
        """Copy of this configuration with only the keys present in overrides replaced"""
        updated = deepcopy(self)

        for section, values in overrides.items():
            section_config = getattr(updated, section)
            for field_name, field_value in (values or {}).items():
                setattr(section_config, field_name, deepcopy(field_value))

        return updated


SECTION_TYPES = {
    'generation': GenerationConfig,
    'quality': QualityConfig,
    'classifier': ClassifierConfig,
    'synthesis': SynthesisConfig,
    'privacy': PrivacyConfig,
    'commitment': CommitmentConfig,
    'network': NetworkConfig,
    'storage': StorageConfig,
}

SECTIONS = list(SECTION_TYPES.keys())


class ConfigLoader:
    """Loads and manages configuration from various sources"""

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize the configuration loader

        Args:
            config_dir: Directory containing preset YAML files
        """
        self.config_dir = Path(config_dir) if config_dir is not None else PRESETS_DIR
        self.presets = self._load_presets()

    def _load_presets(self) -> Dict[str, Config]:
        """Load all available preset configurations"""
        presets = {}

        if not self.config_dir.exists():
            logger.warning(f"Config directory not found: {self.config_dir}")
            return presets

        for preset_file in sorted(self.config_dir.glob("*.yaml")):
            preset_name = preset_file.stem
            try:
                presets[preset_name] = self.load_from_file(preset_file)
                logger.debug(f"Loaded preset: {preset_name}")
            except Exception as e:
                logger.error(f"Failed to load preset {preset_name}: {e}")

        return presets

    def load_from_file(self, filepath: Union[str, Path]) -> Config:
        """
        Load configuration from a YAML file

        Args:
            filepath: Path to the YAML configuration file

        Returns:
            Config object
        """
        return self._dict_to_config(self.read_file(filepath))

    def read_file(self, filepath: Union[str, Path]) -> Dict[str, Any]:
        """
        Read the raw overrides of a YAML file

        Only the keys the file sets are returned, so the result can be
        layered onto another configuration with ``merge_configs``.
        """
        filepath = Path(filepath)

        if not filepath.exists():
            raise FileNotFoundError(f"Configuration file not found: {filepath}")

        with open(filepath, 'r') as f:
            config_dict = yaml.safe_load(f) or {}

        self._check_keys(config_dict)
        return config_dict

    def load_from_dict(self, config_dict: Dict[str, Any]) -> Config:
        """Load configuration from a dictionary"""
        return self._dict_to_config(config_dict)

    def load_preset(self, preset_name: str) -> Config:
        """
        Load a preset configuration by name

        Args:
            preset_name: Name of the preset (e.g., 'default', 'strict')

        Returns:
            Config object
        """
        if preset_name not in self.presets:
            available = ", ".join(self.presets.keys())
            raise ValueError(f"Preset '{preset_name}' not found. Available: {available}")

        return deepcopy(self.presets[preset_name])

    def _check_keys(self, config_dict: Dict[str, Any]):
        """Reject unknown sections and unknown keys within a section"""
        if not isinstance(config_dict, dict):
            raise ValueError("Configuration must be a mapping of sections")

        unknown = set(config_dict) - set(SECTION_TYPES)
        if unknown:
            raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")

        for key, values in config_dict.items():
            if values is None:
                continue
            if not isinstance(values, dict):
                raise ValueError(f"Section '{key}' must be a mapping")
            allowed = {f.name for f in fields(SECTION_TYPES[key])}
            bad_keys = set(values) - allowed
            if bad_keys:
                raise ValueError(f"Unknown keys in '{key}': {sorted(bad_keys)}")

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> Config:
        """Convert dictionary to Config object"""
        self._check_keys(config_dict)
        return Config().update(config_dict)

    def merge_configs(self, base: Config, override: Union[Config, Dict[str, Any], str]) -> Config:
        """
        Merge configurations with override taking precedence

        Args:
            base: Base configuration
            override: Override configuration (Config object, dict, or preset name).
                A dict only replaces the keys it contains; a Config or preset
                replaces every non-None field.

        Returns:
            Merged Config object
        """
        if isinstance(override, str):
            override = self.load_preset(override)
        elif isinstance(override, dict):
            self._check_keys(override)
            return base.update(override)

        return base.merge(override)

    def save_config(self, config: Config, filepath: Union[str, Path]):
        """
        Save configuration to a YAML file

        Args:
            config: Configuration to save
            filepath: Path to save the file
        """
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, 'w') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)

        logger.info(f"Configuration saved to: {filepath}")

    def list_presets(self) -> List[str]:
        """Get list of available preset names"""
        return list(self.presets.keys())


class ConfigValidator:
    """Validates configuration parameters"""

    VALID_DIGESTS = ["rolling", "sha256"]
    VALID_BACKENDS = ["memory", "json"]

    @staticmethod
    def validate(config: Config) -> tuple[bool, List[str]]:
        """
        Validate configuration parameters

        Args:
            config: Configuration to validate

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        errors = []

        # Generation
        if config.generation.default_rows <= 0:
            errors.append("generation.default_rows must be positive")

        if config.generation.max_rows < config.generation.default_rows:
            errors.append("generation.max_rows must be >= generation.default_rows")

        if config.generation.default_output_format not in config.generation.output_formats:
            errors.append(
                f"generation.default_output_format must be one of {config.generation.output_formats}"
            )

        # Quality
        for mode, score in config.quality.base_scores.items():
            if not 0 <= score <= 100:
                errors.append(f"quality.base_scores.{mode} must be between 0 and 100")

        if not 0 <= config.quality.default_score <= 100:
            errors.append("quality.default_score must be between 0 and 100")

        if config.quality.jitter < 1:
            errors.append("quality.jitter must be at least 1")

        highest = max(list(config.quality.base_scores.values()) + [config.quality.default_score])
        if highest + config.quality.jitter - 1 > 100:
            errors.append("quality scores plus jitter must not exceed 100")

        # Classifier
        if not config.classifier.sensitive_keywords:
            errors.append("classifier.sensitive_keywords cannot be empty")

        # Synthesis
        for name in ("age_range", "salary_range", "numeric_range"):
            bounds = getattr(config.synthesis, name)
            if len(bounds) != 2 or bounds[0] >= bounds[1]:
                errors.append(f"synthesis.{name} must be [low, high) with low < high")

        # Privacy
        if config.privacy.range_width <= 0:
            errors.append("privacy.range_width must be positive")

        # Commitment
        if config.commitment.digest not in ConfigValidator.VALID_DIGESTS:
            errors.append(f"commitment.digest must be one of {ConfigValidator.VALID_DIGESTS}")

        if config.commitment.commitment_width <= 0 or config.commitment.proof_width <= 0:
            errors.append("commitment widths must be positive")

        if not config.commitment.namespace:
            errors.append("commitment.namespace cannot be empty")

        # Storage
        if config.storage.backend not in ConfigValidator.VALID_BACKENDS:
            errors.append(f"storage.backend must be one of {ConfigValidator.VALID_BACKENDS}")

        return len(errors) == 0, errors


def get_default_config() -> Config:
    """Get the default configuration"""
    return Config()


def create_strict_preset() -> Config:
    """Suppression and generalization on, real digest"""
    config = Config()
    config.privacy.hide_sensitive = True
    config.privacy.privacy_safe_ranges = True
    config.commitment.digest = "sha256"
    config.generation.default_quality_mode = "high"
    return config


def create_demo_preset() -> Config:
    """Seeded, fast runs for demos and docs"""
    config = Config()
    config.generation.seed = 42
    config.generation.default_rows = 10
    config.generation.default_quality_mode = "fast"
    config.privacy.hide_sensitive = False
    return config
