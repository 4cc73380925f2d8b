import swapper
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="RefreshSession",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "session_id",
                    models.CharField(editable=False, max_length=64, unique=True),
                ),
                ("principal_id", models.CharField(db_index=True, max_length=255)),
                ("issued_at", models.DateTimeField()),
                ("expires_at", models.DateTimeField(db_index=True)),
                ("absolute_expiry", models.DateTimeField(blank=True, null=True)),
                (
                    "revoked_at",
                    models.DateTimeField(blank=True, db_index=True, null=True),
                ),
                (
                    "replaced_by",
                    models.CharField(blank=True, max_length=64, null=True),
                ),
            ],
            options={
                "verbose_name": "Refresh Session",
                "verbose_name_plural": "Refresh Sessions",
                "ordering": ["-created_at"],
                "abstract": False,
                "indexes": [
                    models.Index(
                        fields=["principal_id", "revoked_at", "expires_at"],
                        name="principal_session_lookup_idx",
                    )
                ],
                "swappable": swapper.swappable_setting(
                    "drf_token_authority", "RefreshSession"
                ),
            },
        ),
    ]
