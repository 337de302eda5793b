"""
Initial migration for menu app.
"""
from django.db import migrations, models
import django.core.validators
import django.db.models.deletion
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='MenuItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(help_text='Name of the menu item.', max_length=200)),
                ('description', models.TextField(blank=True)),
                ('base_price', models.DecimalField(decimal_places=2, help_text='Price before customizations.', max_digits=10, validators=[django.core.validators.MinValueValidator(0)])),
                ('is_active', models.BooleanField(default=True, help_text='Inactive items are hidden from the menu.')),
                ('is_available', models.BooleanField(default=True, help_text='Temporarily sold out when false.')),
                ('preparation_time', models.PositiveIntegerField(default=15, help_text='Typical preparation time in minutes.')),
                ('sold_count', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['name'],
                'indexes': [models.Index(fields=['is_active', 'is_available'], name='menu_menuit_is_acti_5c2e81_idx')],
            },
        ),
        migrations.CreateModel(
            name='Customization',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(help_text="Customer-facing name, e.g., 'Size'", max_length=100)),
                ('type', models.CharField(choices=[('single', 'Single Choice'), ('multiple', 'Multiple Choices')], default='single', max_length=10)),
                ('required', models.BooleanField(default=False)),
                ('min_selections', models.PositiveIntegerField(default=1, help_text='Minimum selections when this customization is chosen')),
                ('max_selections', models.PositiveIntegerField(default=1, help_text='Maximum selections allowed')),
                ('sort_order', models.PositiveIntegerField(default=0)),
                ('menu_item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='customizations', to='menu.menuitem')),
            ],
            options={
                'ordering': ['sort_order', 'name'],
            },
        ),
        migrations.CreateModel(
            name='CustomizationOption',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100)),
                ('price_modifier', models.DecimalField(decimal_places=2, default=0, help_text='The amount to add or subtract from the base price.', max_digits=10)),
                ('is_available', models.BooleanField(default=True)),
                ('sort_order', models.PositiveIntegerField(default=0)),
                ('customization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='options', to='menu.customization')),
            ],
            options={
                'ordering': ['sort_order', 'name'],
            },
        ),
    ]
