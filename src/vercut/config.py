"""Configuration management with XDG Base Directory support"""
import os
import re
import shlex
import logging
from pathlib import Path
from typing import Optional, List, Tuple, Pattern

from vercut.rewriter import PRECISE_FILES, SKIP_FILES

__all__ = ['Config', 'get_config', 'reset_config', 'get_platform_dirs',
           'VERSION_ASSIGNMENT', 'DEFAULT_VERSION_SOURCES']

# `version = "X"` with the key in any case and optional blanks around `=`.
# The key must stand alone: `rust-version` and `APP_VERSION` do not count.
VERSION_ASSIGNMENT = r'((?<![\w-])(?i:version)[ \t]*=[ \t]*)"([^"\n]+)"'

DEFAULT_VERSION_SOURCES = [
    ('Cargo.toml', VERSION_ASSIGNMENT),
    ('.env', VERSION_ASSIGNMENT),
]


def get_platform_dirs():
    """Get platform-specific directories (XDG-compliant)"""
    cache_home = os.environ.get('XDG_CACHE_HOME', Path.home() / '.cache')
    return {
        'cache': Path(cache_home) / 'vercut',
    }


class Config:
    """Application configuration"""

    def __init__(self, env: str = 'production', root: Optional[Path] = None):
        self.env = env
        self.dirs = get_platform_dirs()

        # Basic settings
        self.TEST = env == 'test'
        self.DEBUG = env == 'development'

        # Project being released
        self.root = Path(root) if root is not None else Path.cwd()

        # Files scanned, in order, to find the current version
        self.VERSION_SOURCES: List[Tuple[str, str]] = list(DEFAULT_VERSION_SOURCES)

        # File classification by name
        self.PRECISE_FILES = set(PRECISE_FILES)
        self.SKIP_FILES = set(SKIP_FILES)

        # External tools
        self.GIT_PATH = os.environ.get('VERCUT_GIT', 'git')
        self.BUILD_CHECK_COMMAND = shlex.split(
            os.environ.get('VERCUT_BUILD_CHECK', 'cargo check -q'))

        # Tags and pre-releases
        self.TAG_MARKER = os.environ.get('VERCUT_TAG_MARKER', 'v')
        self.PRERELEASE_TOKEN = 'pre'

        self.logs_dir = self.dirs['cache'] / 'logs'

        # Logging
        self.logging = logging.getLogger('vercut')

    def version_sources(self) -> List[Tuple[str, Pattern]]:
        """Compiled (filename, pattern) pairs for the version locator"""
        return [(name, re.compile(pattern)) for name, pattern in self.VERSION_SOURCES]

    def setup_logger(self):
        """Setup logging"""
        handlers = [logging.StreamHandler()]
        if not self.TEST:
            try:
                self.logs_dir.mkdir(parents=True, exist_ok=True)
                handlers.append(logging.FileHandler(self.logs_dir / 'vercut.log'))
            except OSError as e:
                self.logging.warning(f"Not logging to file: {e}")
        logging.basicConfig(
            level=logging.DEBUG if self.DEBUG else logging.INFO,
            format='%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s',
            handlers=handlers
        )


# Global config instance
_config: Optional[Config] = None


def get_config(env: str = 'production', root: Optional[Path] = None) -> Config:
    """Get or create global config instance"""
    global _config
    if _config is None:
        _config = Config(env, root)
    return _config


def reset_config():
    """Drop the global config instance"""
    global _config
    _config = None
