"""Configuration management for the import pipeline."""

import json
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

POLICIES = ('ask', 'always', 'never')
NAME_POLICIES = ('ask', 'full', 'species')


@dataclass
class ImportConfig:
    """How the questions asked during an import are answered."""
    split_sets: str = "ask"
    recode_gaps: str = "ask"
    name_preference: str = "ask"
    gap_char: str = "-"
    missing_char: str = "?"
    wait_for_lock: bool = True

    def __post_init__(self):
        for name in ('split_sets', 'recode_gaps'):
            if getattr(self, name) not in POLICIES:
                raise ValueError(f"{name} must be one of {POLICIES}, got {getattr(self, name)!r}")
        if self.name_preference not in NAME_POLICIES:
            raise ValueError(
                f"name_preference must be one of {NAME_POLICIES}, got {self.name_preference!r}"
            )


@dataclass
class LoggingConfig:
    """Logging configuration settings."""
    level: str = "INFO"
    directory: str = ".sequence_matrix_logs"
    console: bool = True
    colors: bool = True


@dataclass
class PreferencesConfig:
    """Where remembered answers are kept between sessions."""
    enabled: bool = True
    path: str = str(Path.home() / '.sequence_matrix' / 'preferences.json')


@dataclass
class Config:
    """Main configuration container."""
    importing: ImportConfig
    logging: LoggingConfig
    preferences: PreferencesConfig
    
    @classmethod
    def default(cls) -> 'Config':
        """Create default configuration."""
        return cls(
            importing=ImportConfig(),
            logging=LoggingConfig(),
            preferences=PreferencesConfig()
        )
    
    @classmethod
    def from_file(cls, path: Path) -> 'Config':
        """Load configuration from JSON file."""
        if not path.exists():
            return cls.default()
        
        with open(path, 'r') as f:
            data = json.load(f)
        
        return cls(
            importing=ImportConfig(**data.get('importing', {})),
            logging=LoggingConfig(**data.get('logging', {})),
            preferences=PreferencesConfig(**data.get('preferences', {}))
        )
    
    def to_file(self, path: Path) -> None:
        """Save configuration to JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        
        data = {
            'importing': asdict(self.importing),
            'logging': asdict(self.logging),
            'preferences': asdict(self.preferences)
        }
        
        with open(path, 'w') as f:
            json.dump(data, f, indent=2)
    
    def merge_env_vars(self) -> None:
        """Merge environment variables into configuration."""
        if os.getenv('SEQMATRIX_SPLIT_SETS') in POLICIES:
            self.importing.split_sets = os.getenv('SEQMATRIX_SPLIT_SETS')
        if os.getenv('SEQMATRIX_RECODE_GAPS') in POLICIES:
            self.importing.recode_gaps = os.getenv('SEQMATRIX_RECODE_GAPS')
        if os.getenv('SEQMATRIX_NAME_PREFERENCE') in NAME_POLICIES:
            self.importing.name_preference = os.getenv('SEQMATRIX_NAME_PREFERENCE')
        
        if os.getenv('SEQMATRIX_LOG_LEVEL'):
            self.logging.level = os.getenv('SEQMATRIX_LOG_LEVEL').upper()
        
        if os.getenv('SEQMATRIX_PREFS'):
            self.preferences.path = os.getenv('SEQMATRIX_PREFS')
        if os.getenv('SEQMATRIX_NO_PREFS'):
            self.preferences.enabled = False
    
    def merge_cli_args(self, **kwargs) -> None:
        """Merge CLI arguments into configuration.

        Flags left at None on the command line keep the configured value.
        """
        if kwargs.get('split') is not None:
            self.importing.split_sets = 'always' if kwargs['split'] else 'never'
        if kwargs.get('recode_gaps') is not None:
            self.importing.recode_gaps = 'always' if kwargs['recode_gaps'] else 'never'
        if kwargs.get('names'):
            self.importing.name_preference = kwargs['names']
        
        if kwargs.get('verbose'):
            self.logging.level = 'DEBUG'
        
        if kwargs.get('no_prefs'):
            self.preferences.enabled = False


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    locations = [
        Path.home() / '.sequence_matrix' / 'config.json',
        Path.home() / '.config' / 'sequence_matrix' / 'config.json',
        Path('.sequence_matrix.json'),
        Path('sequence_matrix.config.json')
    ]
    
    for path in locations:
        if path.exists():
            return path
    
    return Path.home() / '.sequence_matrix' / 'config.json'


def create_example_config(path: Optional[Path] = None) -> Path:
    """Create an example configuration file."""
    if path is None:
        path = Path('sequence_matrix.config.example.json')
    
    config = Config.default()
    
    config.importing.split_sets = "always"
    config.importing.recode_gaps = "ask"
    config.importing.name_preference = "species"
    config.logging.level = "INFO"
    
    config.to_file(path)
    return path
