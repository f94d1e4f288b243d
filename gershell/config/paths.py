from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class GershellPaths:
    """Centralizes filesystem paths used by gershell."""

    home: Path = field(default_factory=Path.home)

    @property
    def global_dir(self) -> Path:
        return self.home / ".gershell"

    @property
    def config_file(self) -> Path:
        return self.global_dir / "gershell.json"

    @property
    def logs_dir(self) -> Path:
        return self.global_dir / "logs"
