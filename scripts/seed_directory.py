"""
Seeds a sample directory and the default leave types.
Acts as the administering collaborator: the engine itself never writes leave types.

    python -m scripts.seed_directory
"""
from leavedesk.database import SessionLocal, init_db
from leavedesk.models.leave_type import LeaveType
from leavedesk.models.member import Member, MemberRole

DEFAULT_LEAVE_TYPES = [
    ("Annual Leave", 20, "Paid vacation days", "#3b82f6"),
    ("Sick Leave", 10, "Medical certificate required beyond 2 days", "#ef4444"),
    ("Casual Leave", 6, "Short personal errands", "#f59e0b"),
    ("Unpaid Leave", 0, "Leave without pay", "#64748b"),
]

SAMPLE_MEMBERS = [
    ("1", "Hannah Reyes", "hr@example.com", "HR Manager", MemberRole.HR),
    ("2", "Tom Becker", "manager@example.com", "Team Manager", MemberRole.MANAGER),
    ("3", "Eva Lind", "employee@example.com", "Software Engineer", MemberRole.EMPLOYEE),
    ("4", "Sam Okafor", "admin@example.com", "System Administrator", MemberRole.ADMIN),
]

init_db()
db = SessionLocal()

def create_leave_type(name, days, description, color):
    if db.query(LeaveType).filter(LeaveType.name == name).first():
        print(f"Leave type {name} already exists. Skipping.")
        return
    db.add(LeaveType(name=name, annual_allowance_days=days, description=description, color=color, is_active=True))
    db.commit()
    print(f"Created leave type -> {name} ({days} days)")

def create_member(member_id, name, email, title, role):
    if db.query(Member).filter(Member.email == email).first():
        print(f"Member {email} already exists. Skipping.")
        return
    db.add(Member(id=member_id, name=name, email=email, role_title=title, role=role, is_active=True))
    db.commit()
    print(f"Created {role.value} -> {email}")

try:
    for leave_type in DEFAULT_LEAVE_TYPES:
        create_leave_type(*leave_type)
    for member in SAMPLE_MEMBERS:
        create_member(*member)
finally:
    db.close()
