"""User models for authentication and role-based access.

This module defines the custom `User` model which extends Django's
`AbstractUser` with a unique email, a contact phone, and the store role
used to gate customer, admin and delivery endpoints.
"""

from common.choices import UserRole
from django.contrib.auth.models import AbstractUser
from django.core.validators import RegexValidator
from django.db import models


class User(AbstractUser):
    """Custom user with unique email and a store role.

    Fields:
    - email: the primary email, unique at the database level (normalized).
    - phone: contact number in E.164 format.
    - role: customer (default), admin, or delivery partner.
    """

    ROLE_CUSTOMER = UserRole.CUSTOMER
    ROLE_ADMIN = UserRole.ADMIN
    ROLE_DELIVERY = UserRole.DELIVERY
    ROLE_CHOICES = UserRole.choices

    email = models.EmailField(unique=True)
    phone = models.CharField(
        max_length=16,
        blank=True,
        validators=[RegexValidator(r"^\+?[1-9]\d{1,14}$", message="Use E.164 format (e.g., +919812345678)")],
        help_text="Primary contact number for the account in E.164 format",
    )
    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default=ROLE_CUSTOMER, db_index=True)

    def save(self, *args, **kwargs):
        """Normalize email and phone, then persist."""
        if self.email:
            self.email = self.email.strip().lower()
        if self.phone:
            self.phone = self.phone.strip()
        super().save(*args, **kwargs)

    @property
    def is_store_admin(self) -> bool:
        return self.role == self.ROLE_ADMIN or self.is_staff

    @property
    def is_delivery_partner(self) -> bool:
        return self.role == self.ROLE_DELIVERY
