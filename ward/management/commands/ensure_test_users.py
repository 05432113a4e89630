from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand

from ward.models import User

# username, role, display name, department
TEST_SET = [
    ("doctor1", User.ROLE_DOCTOR, "Dr. Sarah Ahmed", "Neurology"),
    ("doctor2", User.ROLE_DOCTOR, "Dr. Omar Khalid", "Internal Medicine"),
    ("nurse1", User.ROLE_NURSE, "Nurse Lina Haddad", "Internal Medicine"),
    ("admin1", User.ROLE_ADMINISTRATOR, "Ward Administrator", ""),
]


class Command(BaseCommand):
    help = "Ensure clinical test users exist with the given password (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default="123456")

    def handle(self, *args, **opts):
        password = make_password(opts["password"])
        for username, role, name, department in TEST_SET:
            u, created = User.objects.get_or_create(
                username=username,
                defaults={"role": role, "name": name, "department": department,
                          "password": password, "is_active": True},
            )
            if not created:
                u.password = password
                u.role = role
                u.name = name
                u.department = department
                u.status = "active"
                u.is_active = True
                u.save(update_fields=["password", "role", "name", "department", "status", "is_active"])
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
