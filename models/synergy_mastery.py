"""
SynergyMastery 모델 정의

프로필별 시너지 숙련도(사용 횟수, 레벨, 해금된 강화)를 저장합니다.
"""
from tortoise import models, fields


class SynergyMastery(models.Model):
    """시너지 숙련도 모델 (프로필 + 시너지당 1행)"""

    id = fields.BigIntField(pk=True)
    profile_id = fields.CharField(max_length=64)
    synergy_id = fields.CharField(max_length=64)
    usage_count = fields.IntField(default=0)
    level = fields.IntField(default=0)
    progress = fields.FloatField(default=0.0)
    unlocked_enhancements = fields.JSONField(default=list)  # 강화 ID 목록 (해금 순서)
    total_score = fields.FloatField(default=0.0)
    last_used = fields.DatetimeField(null=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "synergy_mastery"
        unique_together = [("profile_id", "synergy_id")]
