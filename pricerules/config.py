"""Configuration utilities.

Central place to load environment driven settings (rule colors, log level, report path).
Avoids scattering os.getenv calls around the codebase.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env once on module import
load_dotenv()

DEFAULT_PALETTE = (
    '#0072B2',  # blue
    '#D55E00',  # vermillion
    '#F0E442',  # yellow
    '#009E73',  # green
    '#CC79A7',  # magenta
    '#56B4E9',  # sky blue
    '#E69F00',  # orange
    '#8B4513',  # saddle brown
)


def palette_from_env(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return DEFAULT_PALETTE
    colors = tuple(c.strip() for c in raw.split(',') if c.strip())
    return colors or DEFAULT_PALETTE


@dataclass(slots=True)
class Settings:
    palette: tuple[str, ...] = palette_from_env(os.getenv("RULE_PALETTE"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    output_html: Path = Path(os.getenv("OUTPUT_HTML", "rule_matches.html"))

    def palette_size(self) -> int:
        return len(self.palette)


settings = Settings()
