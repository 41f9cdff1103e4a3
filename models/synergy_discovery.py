"""
DiscoveredSynergy 모델 정의

프로필별로 한 번이라도 발동된 시너지 ID를 기록합니다.
"""
from tortoise import models, fields


class DiscoveredSynergy(models.Model):
    """
    발견한 시너지 모델

    행이 존재하면 발견된 것으로 봅니다 (삭제하지 않음).
    """

    id = fields.BigIntField(pk=True)
    profile_id = fields.CharField(max_length=64)
    synergy_id = fields.CharField(max_length=64)
    discovered_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "discovered_synergy"
        unique_together = [("profile_id", "synergy_id")]
