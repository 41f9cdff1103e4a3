from models.synergy_discovery import DiscoveredSynergy
from models.synergy_mastery import SynergyMastery

__all__ = [
    "DiscoveredSynergy",
    "SynergyMastery",
]
