from django.db import models


class Item(models.Model):
    """
    A todo item owned by the back service.
    Content is immutable once created; items are never deleted.
    """
    id = models.AutoField(primary_key=True)
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return f"#{self.id} {self.content[:50]}"
