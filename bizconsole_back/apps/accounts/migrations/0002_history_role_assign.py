# Generated manually - staff role reassignment history

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("menus", "0001_initial"),
        ("accounts", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="rolepermissionhistory",
            name="action",
            field=models.CharField(
                choices=[("ADD", "권한 추가"), ("REMOVE", "권한 제거"), ("ASSIGN", "역할 변경")],
                max_length=10,
            ),
        ),
        migrations.AlterField(
            model_name="rolepermissionhistory",
            name="menu",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.CASCADE,
                to="menus.menu",
            ),
        ),
    ]
