"""Multi-stage crawler that saves paged articles and their images into a category tree."""

from .config import Config, ConfigError
from .engine import CrawlEngine
from .extract import SelectorExtractor, SelectorRules
from .images import ImageEngine
from .models import ExtractedPage, SeedDescriptor
from .task import CrawlTask

__all__ = [
    "Config",
    "ConfigError",
    "CrawlEngine",
    "CrawlTask",
    "ExtractedPage",
    "ImageEngine",
    "SeedDescriptor",
    "SelectorExtractor",
    "SelectorRules",
]

__version__ = "0.1.0"
