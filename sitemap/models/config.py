from pydantic import BaseModel, Field
from typing import List, Optional
import yaml
from pathlib import Path

def get_default_config_dir() -> Path:
    return Path.home() / ".sitemap"

def get_default_config_path() -> Path:
    return get_default_config_dir() / "config.yml"

class SourceConfig(BaseModel):
    category: str
    path: str
    glob_pattern: str = "**/*.html"

class AppConfig(BaseModel):
    db_path: str = Field(default_factory=lambda: str(get_default_config_dir() / "sitemap.db"))

    # Absolute base for generated links; empty means "use the request's base URL"
    base_url: str = ""
    url_suffix: str = ""

    # Links per sitemap page, and Cache-Control lifetime of sitemap responses
    sitemap_limit: int = Field(default=10000, gt=0)
    sitemap_expires: int = Field(default=0, ge=0)

    snippet_tokens: int = Field(default=24, gt=0, le=64)
    search_limit: int = Field(default=10, gt=0)

    sources: List[SourceConfig] = []

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "AppConfig":
        config_path = path or get_default_config_path()
        if not config_path.exists():
            return cls()
        
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
            if data is None:
                return cls()
            return cls.model_validate(data)

    def save(self, path: Optional[Path] = None):
        config_path = path or get_default_config_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)
        
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False, allow_unicode=True)
