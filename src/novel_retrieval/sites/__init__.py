"""Site adapters for the supported fiction sites."""

from novel_retrieval.sites.base import SiteAdapter, SiteRules
from novel_retrieval.sites.czbooks import CzbooksAdapter
from novel_retrieval.sites.hjwzw import HjwzwAdapter
from novel_retrieval.sites.novel543 import Novel543Adapter
from novel_retrieval.sites.piaotia import PiaotiaAdapter
from novel_retrieval.sites.qbtr import QbtrAdapter
from novel_retrieval.sites.registry import SiteRegistry
from novel_retrieval.sites.uukanshu import UUkanshuAdapter

# Built once at import time and never mutated afterwards
DEFAULT_REGISTRY = SiteRegistry([
    CzbooksAdapter(),
    HjwzwAdapter(),
    Novel543Adapter(),
    PiaotiaAdapter(),
    QbtrAdapter(),
    UUkanshuAdapter(),
])

__all__ = [
    "DEFAULT_REGISTRY",
    "SiteAdapter",
    "SiteRegistry",
    "SiteRules",
]
