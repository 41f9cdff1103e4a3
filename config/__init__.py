"""
시너지 엔진 설정 상수

모든 매직 넘버와 게임 밸런스 관련 상수를 여기서 관리합니다.
각 도메인별 설정은 config/ 하위 모듈에 정의되어 있습니다.
"""
from config.discovery import DiscoveryConfig, DISCOVERY
from config.mastery import MasteryConfig, MASTERY
from config.chain import ChainConfig, CHAIN
from config.composer import ComposerConfig, COMPOSER

__all__ = [
    # discovery
    "DiscoveryConfig", "DISCOVERY",
    # mastery
    "MasteryConfig", "MASTERY",
    # chain
    "ChainConfig", "CHAIN",
    # composer
    "ComposerConfig", "COMPOSER",
]
