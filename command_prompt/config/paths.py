from dataclasses import dataclass
from pathlib import Path

DEFAULT_HISTORY_FILE_NAME = "inquirer-command-prompt-history.json"


@dataclass
class PromptPaths:
    """Centralizes filesystem paths used by a command prompt."""

    folder: Path
    file_name: str = DEFAULT_HISTORY_FILE_NAME

    @property
    def history_file(self) -> Path:
        return Path(self.folder) / self.file_name

    @property
    def state_dir(self) -> Path:
        return Path(self.folder) / ".command_prompt"

    @property
    def logs_dir(self) -> Path:
        return self.state_dir / "logs"

    def corrupted_backup(self, stamp: int) -> Path:
        history_file = self.history_file
        return history_file.with_name(f"{history_file.name}.corrupted-{stamp}")
