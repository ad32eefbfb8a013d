import uuid
from tortoise import fields, models

class UserSession(models.Model):
    """
    Server-side login session.
    The row id is the ``jti`` claim of the session token; logout deletes the row.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    user = fields.ForeignKeyField("models.User", related_name="sessions", on_delete=fields.CASCADE)
    created_at = fields.DatetimeField(auto_now_add=True)
    expires_at = fields.DatetimeField()

    class Meta:
        table = "user_sessions"
