from sqlalchemy import Column, Integer, String, Boolean, Text
from leavedesk.database import Base

class LeaveType(Base):
    __tablename__ = "leave_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)  # referenced by name from leave requests
    annual_allowance_days = Column(Integer, nullable=False, default=0)
    description = Column(Text, default="")
    is_active = Column(Boolean, default=True, nullable=False)
    color = Column(String, nullable=True)
