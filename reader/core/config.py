import os
from typing import Optional
from urllib.parse import urlsplit

class Settings:
    # Outbound fetching
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "10"))
    DIAL_TIMEOUT: float = float(os.getenv("DIAL_TIMEOUT", "30"))
    MAX_REDIRECTS: int = int(os.getenv("MAX_REDIRECTS", "5"))
    MAX_BODY_BYTES: int = int(os.getenv("MAX_BODY_BYTES", str(2 * 1024 * 1024)))
    DEFAULT_ACCEPT_LANGUAGE: str = os.getenv("DEFAULT_ACCEPT_LANGUAGE", "en-US,en;q=0.9")

    # Reader view theme
    THEME_STYLESHEET: str = os.getenv("THEME_STYLESHEET", "https://unpkg.com/sakura.css/css/sakura.css")
    THEME_SCRIPT: Optional[str] = os.getenv("THEME_SCRIPT", "https://bookmarklet-theme.vercel.app/script.js") or None

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def content_security_policy(self) -> str:
        """CSP allowing only our own origin plus the theme assets"""
        script_src = "'self'"
        if self.THEME_SCRIPT:
            script_src += " " + _origin(self.THEME_SCRIPT)
        style_src = "'self' " + _origin(self.THEME_STYLESHEET)
        return f"default-src 'self'; script-src {script_src}; style-src {style_src};"

def _origin(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"

settings = Settings()
