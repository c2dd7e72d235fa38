# Generated manually for distribution app

import uuid
from decimal import Decimal
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('boxes', '0001_initial'),
        ('crew', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='DistributionCycle',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('total_amount', models.DecimalField(decimal_places=2, max_digits=14)),
                ('owner_share', models.DecimalField(decimal_places=2, max_digits=14)),
                ('total_crew_share', models.DecimalField(decimal_places=2, max_digits=14)),
                ('individual_share', models.DecimalField(decimal_places=2, max_digits=14)),
                ('captain_share', models.DecimalField(decimal_places=2, max_digits=14)),
                ('captain_extra_share', models.DecimalField(decimal_places=2, max_digits=14)),
                ('total_captain_extra', models.DecimalField(decimal_places=2, max_digits=14)),
                ('crew_count', models.PositiveIntegerField()),
                ('captain_count', models.PositiveIntegerField()),
                ('share_units', models.DecimalField(decimal_places=2, max_digits=8)),
                ('is_closed', models.BooleanField(default=False)),
                ('total_distributed', models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ('opened_at', models.DateTimeField(auto_now_add=True)),
                ('closed_at', models.DateTimeField(blank=True, null=True)),
                ('box', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='distribution_cycles', to='boxes.financialbox')),
                ('opened_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='distribution_cycles_opened', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'distribution_cycles',
                'ordering': ['-opened_at'],
                'indexes': [
                    models.Index(fields=['box', 'is_closed'], name='cycle_box_closed_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('is_closed', False)), fields=('box',), name='unique_open_cycle_per_box'),
                ],
            },
        ),
        migrations.CreateModel(
            name='MemberPayment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('member_name', models.CharField(max_length=150)),
                ('role', models.CharField(choices=[('captain', 'Captain'), ('crew', 'Crew')], max_length=20)),
                ('status', models.CharField(choices=[('unpaid', 'Unpaid'), ('pending', 'Pending'), ('paid', 'Paid')], default='unpaid', max_length=20)),
                ('base_share', models.DecimalField(decimal_places=2, max_digits=14)),
                ('debt_deduction', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('net_payout', models.DecimalField(decimal_places=2, max_digits=14)),
                ('forgiven_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('cycle', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payments', to='distribution.distributioncycle')),
                ('debt_entry', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='distribution_payments', to='crew.debtledgerentry')),
                ('member', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='distribution_payments', to='crew.crewmember')),
            ],
            options={
                'db_table': 'member_payments',
                'ordering': ['role', 'member_name'],
                'unique_together': {('cycle', 'member')},
                'indexes': [
                    models.Index(fields=['cycle', 'status'], name='payment_cycle_status_idx'),
                ],
            },
        ),
    ]
