# database/models.py

from tortoise import fields, models

from spamcap.domain.models import RawStatus, SpamMode


class RawMessage(models.Model):
    """
    Вхідне повідомлення. Статус змінюють кілька незалежних процесів,
    тому всі записи статусу робляться лише з умовою на попередній статус.
    """
    id = fields.IntField(primary_key=True)
    brand = fields.CharField(max_length=100, null=True, db_index=True, description="Бренд, до якого належить повідомлення")
    text = fields.TextField(null=True, description="Сирий текст повідомлення")
    status: RawStatus = fields.CharEnumField(RawStatus, max_length=20, default=RawStatus.READY, db_index=True)
    preview_matches = fields.JSONField(null=True, description="Причини, чому повідомлення позначене як спам")
    created_at = fields.DatetimeField(auto_now_add=True, db_index=True)

    def __str__(self):
        return f"RawMessage {self.id} [{self.status}]"

    class Meta:
        table = "raw_messages"


class SpamRule(models.Model):
    id = fields.IntField(primary_key=True)
    pattern = fields.CharField(max_length=500, description="Фраза у тому вигляді, як її ввів користувач")
    pattern_norm = fields.CharField(max_length=500, default="", description="Нормалізована форма фрази")
    mode: SpamMode = fields.CharEnumField(SpamMode, max_length=10, default=SpamMode.CONTAINS)
    brand = fields.CharField(max_length=100, null=True, description="NULL означає, що правило діє для всіх брендів")
    enabled = fields.BooleanField(default=True, db_index=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    def __str__(self):
        return f"SpamRule {self.mode}: {self.pattern}"

    class Meta:
        table = "spam_rules"


class SpamLearning(models.Model):
    """Рішення рев'юера, з якого вчиться скорер."""
    id = fields.IntField(primary_key=True)
    text = fields.TextField()
    brand = fields.CharField(max_length=100, null=True, db_index=True)
    is_spam = fields.BooleanField()
    score = fields.FloatField(default=0.0, description="Оцінка евристик на момент навчання")
    reasons = fields.JSONField(null=True)
    source = fields.CharField(max_length=50, null=True)
    created_at = fields.DatetimeField(auto_now_add=True, db_index=True)

    class Meta:
        table = "spam_learning"
