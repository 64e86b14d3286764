"""Django admin helpers shared by the domain apps."""


class ColumnSaveAdminMixin:
    """On edit, save only the columns the admin form changed.

    Stock and coupon counters move under row locks while the change form is
    open; a full-row save would write the values the form was rendered with.
    Many-to-many fields are left to ``save_related``.
    """

    def save_model(self, request, obj, form, change):
        if not change:
            return super().save_model(request, obj, form, change)
        columns = [name for name in form.changed_data if not obj._meta.get_field(name).many_to_many]
        obj.save(update_fields=[*columns, "updated_at"])
