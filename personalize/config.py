import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class Settings:
    openai_api_key: Optional[str] = None
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.7
    fetch_timeout: float = 30.0
    max_workers: int = 4
    font_path: Optional[str] = None
    bold_font_path: Optional[str] = None
    output_root: str = "outputs"
    public_base_url: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Read settings from the environment (call `load_dotenv()` first to pick up a .env file)."""
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            llm_model=os.getenv("PERSONALIZE_LLM_MODEL", "gpt-4o-mini"),
            llm_temperature=float(os.getenv("PERSONALIZE_LLM_TEMPERATURE", "0.7")),
            fetch_timeout=float(os.getenv("PERSONALIZE_FETCH_TIMEOUT", "30")),
            max_workers=int(os.getenv("PERSONALIZE_MAX_WORKERS", "4")),
            font_path=os.getenv("PERSONALIZE_FONT_PATH") or None,
            bold_font_path=os.getenv("PERSONALIZE_BOLD_FONT_PATH") or None,
            output_root=os.getenv("PERSONALIZE_OUTPUT_ROOT", "outputs"),
            public_base_url=os.getenv("PERSONALIZE_PUBLIC_BASE_URL") or None,
        )
