from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='ClassTemplate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('instructor_id', models.CharField(help_text='Username of the instructor teaching this class', max_length=150)),
                ('description', models.TextField(blank=True, default='')),
                ('start_at', models.DateTimeField(help_text='Start of the authored occurrence')),
                ('duration_minutes', models.PositiveIntegerField(default=60)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('join_link', models.URLField(blank=True, default='')),
                ('max_participants', models.PositiveIntegerField(blank=True, null=True)),
                ('is_recurring', models.BooleanField(default=False)),
                ('frequency', models.CharField(choices=[('daily', 'Daily'), ('weekly', 'Weekly')], default='weekly', max_length=20)),
                ('days_of_week', models.JSONField(blank=True, default=list, help_text='Weekdays for weekly recurrence (0=Monday, 6=Sunday)')),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['start_at'],
                'indexes': [
                    models.Index(fields=['is_active', 'start_at'], name='template_active_start_idx'),
                    models.Index(fields=['instructor_id'], name='template_instructor_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SessionType',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('provider_id', models.CharField(max_length=150)),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True, default='')),
                ('duration_minutes', models.PositiveIntegerField(default=60)),
                ('credit_cost', models.PositiveIntegerField(default=1)),
                ('allow_recurring', models.BooleanField(default=False)),
                ('min_lead_hours', models.PositiveIntegerField(default=0)),
                ('max_advance_days', models.PositiveIntegerField(blank=True, help_text='Furthest ahead a session can be booked (null = site default)', null=True)),
                ('min_cancel_hours', models.PositiveIntegerField(default=0)),
                ('min_reschedule_hours', models.PositiveIntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
            ],
            options={
                'ordering': ['provider_id', 'name'],
            },
        ),
        migrations.CreateModel(
            name='WeeklyAvailability',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('provider_id', models.CharField(max_length=150)),
                ('day_of_week', models.IntegerField(choices=[(0, 'Monday'), (1, 'Tuesday'), (2, 'Wednesday'), (3, 'Thursday'), (4, 'Friday'), (5, 'Saturday'), (6, 'Sunday')])),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField()),
            ],
            options={
                'verbose_name_plural': 'weekly availability',
                'ordering': ['provider_id', 'day_of_week', 'start_time'],
            },
        ),
        migrations.CreateModel(
            name='Membership',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('user_id', models.CharField(max_length=150, unique=True)),
                ('is_active', models.BooleanField(default=False)),
                ('expires_at', models.DateTimeField(blank=True, null=True)),
                ('tier', models.CharField(blank=True, default='', max_length=50)),
            ],
        ),
        migrations.CreateModel(
            name='InstanceOverride',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('instance_id', models.CharField(max_length=100, unique=True)),
                ('is_cancelled', models.BooleanField(default=False)),
                ('start_at', models.DateTimeField(blank=True, null=True)),
                ('duration_minutes', models.PositiveIntegerField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('template', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='overrides', to='scheduling.classtemplate')),
            ],
        ),
        migrations.CreateModel(
            name='Enrollment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('user_id', models.CharField(max_length=150)),
                ('instance_id', models.CharField(max_length=100)),
                ('joined_at', models.DateTimeField()),
                ('template', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='enrollments', to='scheduling.classtemplate')),
            ],
            options={
                'ordering': ['joined_at'],
                'constraints': [
                    models.UniqueConstraint(fields=('user_id', 'instance_id'), name='unique_enrollment_per_instance'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Booking',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('user_id', models.CharField(max_length=150)),
                ('provider_id', models.CharField(max_length=150)),
                ('start_at', models.DateTimeField()),
                ('duration_minutes', models.PositiveIntegerField()),
                ('credit_cost', models.PositiveIntegerField()),
                ('status', models.CharField(choices=[('scheduled', 'Scheduled'), ('cancelled', 'Cancelled')], default='scheduled', max_length=20)),
                ('series_id', models.UUIDField(blank=True, null=True)),
                ('occurrence_index', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('session_type', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='bookings', to='scheduling.sessiontype')),
            ],
            options={
                'ordering': ['start_at'],
                'indexes': [
                    models.Index(fields=['user_id', 'start_at'], name='booking_user_start_idx'),
                    models.Index(fields=['provider_id', 'start_at'], name='booking_provider_start_idx'),
                    models.Index(fields=['series_id'], name='booking_series_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='CreditTransaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('user_id', models.CharField(max_length=150)),
                ('kind', models.CharField(choices=[('purchase', 'Purchase'), ('usage', 'Usage'), ('refund', 'Refund'), ('admin', 'Admin'), ('gift', 'Gift')], max_length=20)),
                ('amount', models.IntegerField()),
                ('description', models.CharField(blank=True, default='', max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('booking', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='credit_transactions', to='scheduling.booking')),
            ],
            options={
                'ordering': ['created_at', 'id'],
                'indexes': [
                    models.Index(fields=['user_id', 'created_at'], name='credit_user_created_idx'),
                ],
            },
        ),
    ]
