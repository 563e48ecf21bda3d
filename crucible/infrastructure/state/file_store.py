"""
File-based state storage implementation
"""
import json
from pathlib import Path
from typing import Dict, Any, Optional, List

from ...core.interfaces import StateStore
from ...core.logging import get_logger

logger = get_logger(__name__)


class FileStateStore(StateStore):
    """
    File-based state storage.

    One JSON document per instance: ``{state_dir}/{name}.json``.
    Writes replace the whole document; there is no locking, concurrent
    writers for the same instance race.
    """

    def __init__(self, state_dir: Path):
        """
        Initialize file state store.

        The directory is created lazily on first save.

        Args:
            state_dir: Directory for storing state files
        """
        self.state_dir = Path(state_dir).expanduser()

    def _get_state_file(self, name: str) -> Path:
        """Get state file path for instance"""
        return self.state_dir / f"{name}.json"

    def path_for(self, name: str) -> Path:
        return self._get_state_file(name)

    def save(self, name: str, state: Dict[str, Any]) -> None:
        """Save state for a named instance"""
        self.state_dir.mkdir(parents=True, exist_ok=True)
        state_file = self._get_state_file(name)
        state_file.write_text(json.dumps(state, indent=2, sort_keys=True), encoding='utf-8')

    def load(self, name: str) -> Optional[Dict[str, Any]]:
        """Load state for a named instance, None if absent or unreadable"""
        state_file = self._get_state_file(name)
        if not state_file.exists():
            return None

        try:
            data = json.loads(state_file.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable state file {state_file}: {e}")
            return None
        return data if isinstance(data, dict) else None

    def delete(self, name: str) -> None:
        """Delete state for a named instance"""
        state_file = self._get_state_file(name)
        if state_file.exists():
            state_file.unlink()

    def list(self) -> List[str]:
        """List all instance names with a state file"""
        if not self.state_dir.is_dir():
            return []
        return sorted(p.stem for p in self.state_dir.glob("*.json"))

    def exists(self, name: str) -> bool:
        """Check if state exists for a named instance"""
        return self._get_state_file(name).exists()
