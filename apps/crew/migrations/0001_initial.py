# Generated manually for crew app

import uuid
from decimal import Decimal
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='CrewMember',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=150)),
                ('role', models.CharField(choices=[('captain', 'Captain'), ('crew', 'Crew')], default='crew', max_length=20)),
                ('phone', models.CharField(blank=True, max_length=30)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('join_date', models.DateField(default=django.utils.timezone.localdate)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'crew_members',
                'ordering': ['name', 'created_at'],
                'indexes': [
                    models.Index(fields=['is_active', 'role'], name='crew_active_role_idx'),
                    models.Index(fields=['name'], name='crew_name_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='DebtLedgerEntry',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('entry_type', models.CharField(choices=[('add', 'Add'), ('subtract', 'Subtract')], default='add', max_length=10)),
                ('description', models.CharField(blank=True, max_length=255)),
                ('entry_date', models.DateField(default=django.utils.timezone.localdate)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('member', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='debt_entries', to='crew.crewmember')),
            ],
            options={
                'db_table': 'crew_debt_entries',
                'ordering': ['-entry_date', '-created_at'],
                'indexes': [
                    models.Index(fields=['member', 'entry_date'], name='debt_member_date_idx'),
                    models.Index(fields=['entry_type'], name='debt_entry_type_idx'),
                ],
            },
        ),
    ]
