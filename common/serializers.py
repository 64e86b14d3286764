"""Serializer helpers shared by the admin write endpoints."""

from rest_framework.utils import model_meta


class ColumnUpdateMixin:
    """``ModelSerializer.update`` that writes only the submitted columns.

    Counters owned by services (``Product.stock``, ``Coupon.used_count``) are
    changed with row locks or guarded updates while an admin form is open, so
    a full-row save from the instance loaded by ``get_object`` would put a
    stale value back. Fields listed in ``live_fields`` are re-read after the
    save so the response shows the current value.
    """

    live_fields: tuple = ()

    def update(self, instance, validated_data):
        info = model_meta.get_field_info(instance)
        columns, many = [], {}
        for attr, value in validated_data.items():
            if attr in info.relations and info.relations[attr].to_many:
                many[attr] = value
            else:
                setattr(instance, attr, value)
                columns.append(attr)

        if columns:
            instance.save(update_fields=[*columns, "updated_at"])
        for attr, value in many.items():
            getattr(instance, attr).set(value)
        if self.live_fields:
            instance.refresh_from_db(fields=list(self.live_fields))
        return instance
