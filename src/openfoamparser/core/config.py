"""Configuration of the case reader."""

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from openfoamparser.io.sources import join_path

# Optional YAML support
try:
    import yaml
    HAS_YAML = True
except ImportError:
    yaml = None
    HAS_YAML = False


@dataclass
class ReaderConfig:
    """Options controlling where and how a case is read."""
    region: Optional[str] = None  # None = default region
    mesh_directory: str = "polyMesh"
    constant_directory: str = "constant"
    allow_compressed: bool = True  # fall back to <file>.gz
    boundary_patterns: bool = True  # honour group and quoted regex keys in boundaryField
    cell_centres_field: str = "C"

    def __post_init__(self):
        if not self.mesh_directory:
            raise ValueError("mesh_directory must not be empty")
        if not self.constant_directory:
            raise ValueError("constant_directory must not be empty")

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> 'ReaderConfig':
        """Load configuration from YAML or JSON file."""
        config_path = Path(config_path)
        file_format = _file_format(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r') as f:
            data = yaml.safe_load(f) if file_format == 'yaml' else json.load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReaderConfig':
        """Create configuration from dictionary."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown reader configuration keys: {', '.join(unknown)}")
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    def save(self, config_path: Union[str, Path]) -> None:
        """Save configuration to file, in the format its suffix names."""
        config_path = Path(config_path)
        file_format = _file_format(config_path)

        with open(config_path, 'w') as f:
            if file_format == 'yaml':
                yaml.safe_dump(self.to_dict(), f, default_flow_style=False)
            else:
                json.dump(self.to_dict(), f, indent=2)

    def mesh_path(self, root: str) -> str:
        """Key of the polyMesh directory under a case root."""
        return join_path(root, self.constant_directory, self.region, self.mesh_directory)


def _file_format(config_path: Path) -> str:
    """'yaml' or 'json' from the file suffix."""
    suffix = config_path.suffix.lower()
    if suffix in ('.yaml', '.yml'):
        if not HAS_YAML:
            raise ImportError(
                "YAML support not available. Install PyYAML with: pip install PyYAML\n"
                "Or use a JSON configuration file instead."
            )
        return 'yaml'
    if suffix == '.json':
        return 'json'
    raise ValueError(f"Unsupported config file format: {config_path.suffix}")
