import uuid
from typing import Optional
from tortoise import fields, models

class Document(models.Model):
    """
    Reference work uploaded by an admin for research mode.
    - file_url: path of the stored upload (removed together with the row)
    - file_type: MIME type of the upload
    - category: free text (e.g. "Fiqh", "Tafsir"), not a chat category
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    title = fields.CharField(max_length=255)
    author = fields.CharField(max_length=255)
    category = fields.CharField(max_length=128)
    description = fields.TextField(null=True)
    file_url = fields.CharField(max_length=1024)
    file_type = fields.CharField(max_length=128)

    uploaded_by: Optional[fields.ForeignKeyRelation["User"]] = fields.ForeignKeyField(
        "models.User", related_name="documents"
    )

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "documents"
