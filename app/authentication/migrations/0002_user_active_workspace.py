import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("authentication", "0001_initial"),
        ("workspaces", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="user",
            name="active_workspace",
            field=models.ForeignKey(
                blank=True,
                help_text="Workspace currently selected by the user",
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="active_users",
                to="workspaces.workspace",
            ),
        ),
    ]
