from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models


# ---------- Tenant / Business ----------
class Business(models.Model):

    """Root scope for every other record"""
    # Link to the user account that owns the business
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="businesses",
    )
    name = models.CharField(max_length=200)

    # Contact fields
    address = models.TextField(blank=True, default="")
    phone = models.CharField(max_length=32, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    tax_id = models.CharField(max_length=64, blank=True, default="")

    # Store timestamp when the record is first created
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "businesses"
        # One owner cannot have two businesses with the same name
        constraints = [
            models.UniqueConstraint(
                fields=["owner", "name"], name="uq_owner_business_name"
            ),
        ]

    def __str__(self):
        return self.name

    def is_owned_by(self, user):
        return bool(user and user.is_authenticated and self.owner_id == user.pk)


# ---------- Custom User ----------
class User(AbstractUser):
    # Inherits from Django's AbstractUser, so it keeps all the usual fields
    """ AUTH_USER_MODEL = "books_core.User" is set in settings.py """
    # Business used when nothing is selected in the session
    default_business = models.ForeignKey(
        "Business",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,  # If the business is deleted,
        # don't delete the user, just clear their default business
        related_name="default_users",
    )

    # Optional contact number field, can be left empty in forms
    phone = models.CharField(max_length=32, blank=True)

    def __str__(self):
        # Fall back to username if no name is set
        return self.get_full_name() or self.username
