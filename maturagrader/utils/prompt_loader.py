import json
from pathlib import Path
from typing import Dict, List, Optional

REQUIRED_PROMPT_FILES = ("grading.json",)
REQUIRED_LANGUAGES = ("pl", "en")

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _read_prompt_file(path: Path) -> Dict[str, str]:
    """Read one `<name>.json` file mapping language code to system prompt."""
    if not path.exists():
        raise FileNotFoundError(f"Required prompt file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise RuntimeError(f"Error loading prompts from {path}: {exc}") from exc

    missing = [language for language in REQUIRED_LANGUAGES if language not in data]
    if missing:
        raise ValueError(f"Missing language(s) {missing} in {path}")
    return data


class PromptLoader:
    """Grading prompts from `prompts/<version>/`, one JSON file per prompt.

    Every prompt file is read and checked at construction.
    """

    def __init__(self, prompts_dir: Optional[str] = None, version: str = "v1.0.0") -> None:
        if prompts_dir is None:
            self.prompts_dir = PROJECT_ROOT / "prompts"
        else:
            # relative paths may be given from the CWD or from the project root
            candidate = Path(prompts_dir)
            self.prompts_dir = candidate if candidate.exists() else PROJECT_ROOT / candidate

        self.version = version
        version_dir = self.prompts_dir / version
        if not version_dir.exists():
            raise FileNotFoundError(f"Prompts directory not found: {version_dir}")

        self._prompts: Dict[str, Dict[str, str]] = {
            Path(filename).stem: _read_prompt_file(version_dir / filename)
            for filename in REQUIRED_PROMPT_FILES
        }

    def load_prompt(self, prompt_name: str, language: str = "pl") -> str:
        by_language = self._prompts.get(prompt_name)
        if by_language is None:
            raise ValueError(
                f"No prompts found for: '{prompt_name}'. Available prompts: {self.get_available_prompts()}"
            )
        if language not in by_language:
            raise ValueError(
                f"No prompt found for language: '{language}' in '{prompt_name}'. "
                f"Available languages: {list(by_language)}"
            )
        return by_language[language]

    def get_available_prompts(self) -> List[str]:
        return list(self._prompts)

    def get_available_languages(self, prompt_name: str) -> List[str]:
        return list(self._prompts.get(prompt_name, {}))
