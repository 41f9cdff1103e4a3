"""시너지 연쇄(체인) 시스템 설정"""
from dataclasses import dataclass


@dataclass(frozen=True)
class ChainConfig:
    """체인 설정"""

    MAX_CHAIN_DEPTH: int = 5
    """최대 체인 깊이 (순환 간선 무한루프 방지)"""

    DEPTH_BONUS: float = 0.1
    """깊이당 링크 배율 보너스"""

    ROOT_MULTIPLIER: float = 1.0
    """루트 링크 배율"""


CHAIN = ChainConfig()
