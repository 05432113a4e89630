import django.contrib.auth.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


DISCHARGED_PATIENTS_VIEW = """
CREATE VIEW discharged_patients AS
SELECT
    a.id,
    a.patient_id,
    p.mrn,
    p.name,
    a.admission_date,
    a.discharge_date,
    a.department,
    a.discharge_type,
    a.follow_up_required,
    a.follow_up_date,
    a.discharge_note,
    u.name AS doctor_name
FROM admissions a
    JOIN patients p ON a.patient_id = p.id
    LEFT JOIN users u ON a.admitting_doctor_id = u.id
WHERE a.status = 'discharged'
"""


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('email', models.EmailField(blank=True, max_length=254, verbose_name='email address')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('role', models.CharField(choices=[('doctor', 'Doctor'), ('nurse', 'Nurse'), ('administrator', 'Administrator')], default='doctor', max_length=20)),
                ('name', models.CharField(blank=True, max_length=255)),
                ('medical_code', models.CharField(blank=True, max_length=50)),
                ('department', models.CharField(blank=True, db_index=True, max_length=255)),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive')], default='active', max_length=20)),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'db_table': 'users',
            },
            managers=[
                ('objects', django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='Patient',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('mrn', models.CharField(max_length=50, unique=True)),
                ('name', models.CharField(max_length=255)),
                ('date_of_birth', models.DateField()),
                ('gender', models.CharField(choices=[('male', 'Male'), ('female', 'Female')], max_length=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'patients',
            },
        ),
        migrations.CreateModel(
            name='Appointment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('mrn', models.CharField(max_length=50)),
                ('patient_name', models.CharField(max_length=255)),
                ('specialty', models.CharField(max_length=255)),
                ('appointment_type', models.CharField(default='regular', max_length=50)),
                ('status', models.CharField(default='pending', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'appointments',
            },
        ),
        migrations.CreateModel(
            name='Admission',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('department', models.CharField(max_length=255)),
                ('diagnosis', models.TextField(blank=True)),
                ('admission_date', models.DateTimeField()),
                ('discharge_date', models.DateTimeField(blank=True, null=True)),
                ('status', models.CharField(choices=[('active', 'Active'), ('discharged', 'Discharged'), ('transferred', 'Transferred')], db_index=True, default='active', max_length=20)),
                ('visit_number', models.PositiveIntegerField(default=1)),
                ('safety_type', models.CharField(blank=True, choices=[('emergency', 'Emergency'), ('observation', 'Observation'), ('short-stay', 'Short stay')], max_length=20, null=True)),
                ('shift_type', models.CharField(choices=[('morning', 'Morning'), ('evening', 'Evening'), ('night', 'Night'), ('weekend_morning', 'Weekend morning (7:00 - 19:00)'), ('weekend_night', 'Weekend night (19:00 - 7:00)')], default='morning', max_length=20)),
                ('is_weekend', models.BooleanField(default=False)),
                ('discharge_type', models.CharField(blank=True, choices=[('regular', 'Regular'), ('against-medical-advice', 'Against medical advice'), ('transfer', 'Transfer')], max_length=50, null=True)),
                ('follow_up_required', models.BooleanField(default=False)),
                ('follow_up_date', models.DateField(blank=True, null=True)),
                ('discharge_note', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('admitting_doctor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='admissions_admitted', to=settings.AUTH_USER_MODEL)),
                ('discharge_doctor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='admissions_discharged', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='admissions', to='ward.patient')),
            ],
            options={
                'db_table': 'admissions',
                'indexes': [
                    models.Index(condition=models.Q(('discharge_type__isnull', False)), fields=['discharge_type'], name='idx_admissions_discharge_type'),
                    models.Index(condition=models.Q(('follow_up_required', True)), fields=['follow_up_date'], name='idx_admissions_follow_up'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Consultation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('mrn', models.CharField(max_length=50)),
                ('patient_name', models.CharField(max_length=255)),
                ('age', models.PositiveIntegerField(blank=True, null=True)),
                ('gender', models.CharField(blank=True, choices=[('male', 'Male'), ('female', 'Female')], max_length=10)),
                ('requesting_department', models.CharField(blank=True, max_length=255)),
                ('consultation_specialty', models.CharField(max_length=255)),
                ('reason', models.TextField(blank=True)),
                ('urgency', models.CharField(choices=[('routine', 'routine'), ('urgent', 'urgent'), ('emergency', 'emergency')], default='routine', max_length=16)),
                ('doctor_name', models.CharField(blank=True, max_length=255)),
                ('status', models.CharField(choices=[('active', 'active'), ('completed', 'completed')], db_index=True, default='active', max_length=16)),
                ('completion_note', models.TextField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('completed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='consultations_completed', to=settings.AUTH_USER_MODEL)),
                ('doctor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='consultations_assigned', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='consultations', to='ward.patient')),
            ],
            options={
                'db_table': 'consultations',
                'indexes': [
                    models.Index(fields=['consultation_specialty', 'status'], name='idx_consultations_specialty'),
                ],
            },
        ),
        migrations.CreateModel(
            name='MedicalNote',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('note_type', models.CharField(choices=[('Discharge Summary', 'Discharge Summary'), ('Consultation Note', 'Consultation Note'), ('Progress Note', 'Progress Note')], max_length=50)),
                ('content', models.TextField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('doctor', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='medical_notes', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='medical_notes', to='ward.patient')),
            ],
            options={
                'db_table': 'medical_notes',
                'indexes': [
                    models.Index(fields=['patient', 'created_at'], name='idx_medical_notes_patient'),
                ],
            },
        ),
        migrations.CreateModel(
            name='LongStayNote',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('content', models.TextField()),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='long_stay_notes', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='long_stay_notes', to='ward.patient')),
            ],
            options={
                'db_table': 'long_stay_notes',
            },
        ),
        migrations.CreateModel(
            name='AuditEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(max_length=64)),
                ('object_type', models.CharField(blank=True, max_length=64, null=True)),
                ('object_id', models.IntegerField(blank=True, null=True)),
                ('detail', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'audit_events',
                'indexes': [
                    models.Index(fields=['action', 'created_at'], name='idx_audit_action'),
                    models.Index(fields=['object_type', 'object_id', 'created_at'], name='idx_audit_object'),
                ],
            },
        ),
        migrations.CreateModel(
            name='DischargedPatient',
            fields=[
                ('id', models.IntegerField(primary_key=True, serialize=False)),
                ('patient_id', models.IntegerField()),
                ('mrn', models.CharField(max_length=50)),
                ('name', models.CharField(max_length=255)),
                ('admission_date', models.DateTimeField()),
                ('discharge_date', models.DateTimeField(null=True)),
                ('department', models.CharField(max_length=255)),
                ('discharge_type', models.CharField(max_length=50, null=True)),
                ('follow_up_required', models.BooleanField()),
                ('follow_up_date', models.DateField(null=True)),
                ('discharge_note', models.TextField(null=True)),
                ('doctor_name', models.CharField(max_length=255, null=True)),
            ],
            options={
                'db_table': 'discharged_patients',
                'managed': False,
            },
        ),
        migrations.RunSQL(
            sql=DISCHARGED_PATIENTS_VIEW,
            reverse_sql='DROP VIEW IF EXISTS discharged_patients',
        ),
    ]
